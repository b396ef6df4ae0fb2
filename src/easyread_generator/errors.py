from __future__ import annotations

GENERIC_SERVER_MESSAGE = "Server error. Please try again."


class TransformError(Exception):
    """Base error for transform failures.

    Every variant has a fixed HTTP status and a message that is safe to show to
    an end user. Instances are returned as values inside the pipeline and only
    raised at the HTTP edge.
    """

    status_code: int = 500
    kind: str = "server_error"
    default_message: str = GENERIC_SERVER_MESSAGE

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(TransformError):
    status_code = 400
    kind = "validation_error"
    default_message = 'Body must be JSON with a string field "text".'


class ConfigError(TransformError):
    kind = "config_error"
    default_message = "Server not configured: missing OpenAI API key."


class UpstreamError(TransformError):
    """Failure of a single outbound completion call."""

    kind = "upstream_error"


class UpstreamTimeout(UpstreamError):
    kind = "upstream_timeout"
    default_message = "The request took too long, please try again."


class UpstreamNetworkError(UpstreamError):
    kind = "upstream_network_error"


class UpstreamHttpError(UpstreamError):
    kind = "upstream_http_error"

    def __init__(self, upstream_status: int, message: str | None = None):
        self.upstream_status = upstream_status
        if upstream_status == 429:
            self.status_code = 429
            message = message or "Rate limit exceeded. Please wait and try again."
        super().__init__(message)


class MalformedOutput(TransformError):
    kind = "malformed_output"
    default_message = "The AI response was malformed. Please try again."


class RateLimited(TransformError):
    status_code = 429
    kind = "rate_limited"
    default_message = "Too many requests, please try again later."

    def __init__(self, scope: str = "global", message: str | None = None):
        super().__init__(message)
        self.scope = scope
