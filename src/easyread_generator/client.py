from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
import structlog

from .config import OPENAI_API_BASE
from .contracts import PromptMessage
from .errors import UpstreamError, UpstreamHttpError, UpstreamNetworkError, UpstreamTimeout
from .metrics import upstream_calls_total, upstream_latency_seconds

log = structlog.get_logger()


class CompletionClient(Protocol):
    @property
    def configured(self) -> bool: ...

    async def call(self, messages: Sequence[PromptMessage]) -> str | UpstreamError: ...

    async def close(self) -> None: ...


def _first_choice_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


class OpenAICompletionClient:
    """
    One chat-completions POST per call, bounded by a hard deadline.

    On expiry the in-flight request task is cancelled, which makes httpx drop
    the underlying connection instead of leaving it to finish in the background.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        client: httpx.AsyncClient | None = None,
        base_url: str = OPENAI_API_BASE,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        timeout_seconds: float = 12,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self._timeout_seconds = timeout_seconds
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def close(self) -> None:
        await self._client.aclose()

    async def call(self, messages: Sequence[PromptMessage]) -> str | UpstreamError:
        payload: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [m.to_dict() for m in messages],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        started = time.monotonic()
        try:
            resp = await asyncio.wait_for(
                self._client.post(self._url, json=payload, headers=headers),
                timeout=self._timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            upstream_calls_total.labels(outcome="timeout").inc()
            log.warning("upstream_timeout", timeout_seconds=self._timeout_seconds)
            return UpstreamTimeout()
        except httpx.HTTPError as e:
            upstream_calls_total.labels(outcome="network_error").inc()
            log.warning("upstream_network_error", error_type=type(e).__name__)
            return UpstreamNetworkError()
        finally:
            upstream_latency_seconds.observe(max(0.0, time.monotonic() - started))

        if not resp.is_success:
            # The provider body is deliberately not read into the error.
            upstream_calls_total.labels(outcome="http_error").inc()
            log.warning("upstream_http_error", status_code=resp.status_code)
            return UpstreamHttpError(resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            # A broken gateway body is a transport failure, not a bad model answer.
            upstream_calls_total.labels(outcome="invalid_body").inc()
            log.warning("upstream_body_not_json", status_code=resp.status_code)
            return UpstreamNetworkError()

        upstream_calls_total.labels(outcome="success").inc()
        return _first_choice_content(data)
