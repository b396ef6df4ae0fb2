from .client import CompletionClient, OpenAICompletionClient
from .config import EasyReadConfig
from .contracts import PromptMessage, TransformResult
from .errors import TransformError
from .extraction import extract_json
from .orchestrator import TransformOrchestrator
from .prompts import build_messages
from .rate_limit import RateLimiter, SlidingWindowRateLimiter
from .validation import validate_request

__all__ = [
    "CompletionClient",
    "EasyReadConfig",
    "OpenAICompletionClient",
    "PromptMessage",
    "RateLimiter",
    "SlidingWindowRateLimiter",
    "TransformError",
    "TransformOrchestrator",
    "TransformResult",
    "build_messages",
    "extract_json",
    "validate_request",
]
