from __future__ import annotations

import time
from typing import Any

import structlog

from .client import CompletionClient
from .contracts import TransformResult
from .errors import ConfigError, MalformedOutput, TransformError, UpstreamError
from .extraction import extract_json
from .metrics import completion_attempts_total
from .prompts import DEFAULT_REPAIR_STRATEGY, RepairStrategy, build_messages
from .validation import validate_request

log = structlog.get_logger()

MAX_ATTEMPTS = 2


class TransformOrchestrator:
    """
    Runs validate -> prompt -> call -> extract, repairing the prompt once on bad output.

    Transport failures end the request immediately; only a completion that does
    not yield a well-formed result moves on to the next prompt transform.
    """

    def __init__(self, client: CompletionClient, *, strategy: RepairStrategy = DEFAULT_REPAIR_STRATEGY):
        if not 1 <= len(strategy) <= MAX_ATTEMPTS:
            raise ValueError(f"Repair strategy must have between 1 and {MAX_ATTEMPTS} steps.")
        self.client = client
        self.strategy = strategy

    async def run(self, body: Any) -> TransformResult | TransformError:
        validated = validate_request(body)
        if isinstance(validated, TransformError):
            return validated
        return await self.transform(validated)

    async def transform(self, text: str) -> TransformResult | TransformError:
        if not self.client.configured:
            log.error("transform_not_configured")
            return ConfigError()

        started = time.monotonic()
        base_messages = build_messages(text)
        for attempt, prompt_transform in enumerate(self.strategy, start=1):
            raw = await self.client.call(prompt_transform(base_messages))
            if isinstance(raw, UpstreamError):
                completion_attempts_total.labels(attempt=str(attempt), outcome=raw.kind).inc()
                log.warning("transform_failed", attempt=attempt, kind=raw.kind)
                return raw

            result = TransformResult.from_payload(extract_json(raw))
            if result is not None:
                completion_attempts_total.labels(attempt=str(attempt), outcome="ok").inc()
                log.info(
                    "transform_ok",
                    attempt=attempt,
                    input_chars=len(text),
                    latency_seconds=round(time.monotonic() - started, 3),
                )
                return result

            completion_attempts_total.labels(attempt=str(attempt), outcome="malformed").inc()
            log.info("transform_attempt_malformed", attempt=attempt, raw_chars=len(raw))

        log.warning("transform_failed", attempts=len(self.strategy), kind=MalformedOutput.kind)
        return MalformedOutput()
