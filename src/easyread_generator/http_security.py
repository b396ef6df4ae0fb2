from __future__ import annotations

import re
import uuid
from typing import Any

from .errors import RateLimited
from .metrics import rate_limited_total, server_errors_total
from .rate_limit import RateLimiter
from .schemas import make_error_response

API_PREFIX = "/api/"

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{8,128}$")


def coerce_request_id(value: str | None) -> str:
    if value and _REQUEST_ID_RE.fullmatch(value):
        return value
    return uuid.uuid4().hex


def client_key(request: Any) -> str:
    client = getattr(request, "client", None)
    host = getattr(client, "host", None)
    return host or "unknown"


def _is_api_path(path: str) -> bool:
    return path.startswith(API_PREFIX)


def install_middlewares(app, *, cfg, global_limiter: RateLimiter) -> None:
    """
    Install request id, security headers, the coarse rate limit and the body cap.

    Kept as a helper to keep `server.py` lean and tests isolated.
    """
    import structlog
    from fastapi.responses import JSONResponse
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.requests import Request

    def _too_large() -> JSONResponse:
        server_errors_total.labels(kind="body_too_large").inc()
        return JSONResponse(status_code=413, content=make_error_response("Request body too large."))

    class RequestIdMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next):
            request_id = coerce_request_id(request.headers.get("x-request-id"))
            request.state.request_id = request_id
            structlog.contextvars.bind_contextvars(request_id=request_id)
            try:
                response = await call_next(request)
            finally:
                structlog.contextvars.clear_contextvars()
            response.headers.setdefault("X-Request-Id", request_id)
            return response

    class SecurityHeadersMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next):
            response = await call_next(request)
            response.headers.setdefault("X-Content-Type-Options", "nosniff")
            response.headers.setdefault("X-Frame-Options", "DENY")
            response.headers.setdefault("Referrer-Policy", "no-referrer")
            response.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
            if not cfg.enable_api_docs:
                response.headers.setdefault("X-Robots-Tag", "noindex, nofollow")
            if _is_api_path(request.url.path):
                response.headers.setdefault("Cache-Control", "no-store")
                response.headers.setdefault("Pragma", "no-cache")
            return response

    class GlobalRateLimitMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next):
            if not global_limiter.hit(client_key(request)):
                rate_limited_total.labels(scope="global").inc()
                server_errors_total.labels(kind=RateLimited.kind).inc()
                exc = RateLimited(scope="global")
                return JSONResponse(status_code=exc.status_code, content=make_error_response(exc.message))
            return await call_next(request)

    class MaxBodySizeMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next):
            limit = int(cfg.max_request_body_bytes or 0)
            if limit > 0 and request.method in ("POST", "PUT", "PATCH") and _is_api_path(request.url.path):
                content_length = request.headers.get("content-length")
                if content_length and content_length.isdigit() and int(content_length) > limit:
                    return _too_large()
                body = await request.body()
                if len(body) > limit:
                    return _too_large()
            return await call_next(request)

    app.add_middleware(MaxBodySizeMiddleware)
    app.add_middleware(GlobalRateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    # Must be outermost to ensure `X-Request-Id` is set even when inner middleware short-circuits.
    app.add_middleware(RequestIdMiddleware)
