from __future__ import annotations

import os
import time
from contextlib import asynccontextmanager

import structlog

try:
    from fastapi import FastAPI, Request
    from fastapi.responses import JSONResponse
except ImportError as e:  # pragma: no cover
    raise RuntimeError('Install the "server" extra: pip install -e ".[server]"') from e

from .client import CompletionClient, OpenAICompletionClient
from .config import EasyReadConfig
from .errors import GENERIC_SERVER_MESSAGE, RateLimited, TransformError
from .http_security import client_key, install_middlewares
from .logging import configure_logging
from .metrics import (
    maybe_start_metrics,
    rate_limited_total,
    server_errors_total,
    server_request_latency_seconds,
    server_requests_total,
)
from .orchestrator import TransformOrchestrator
from .rate_limit import RateLimiter, SlidingWindowRateLimiter
from .schemas import TransformResponse, make_error_response, make_transform_response

log = structlog.get_logger()

TRANSFORM_PATH = "/api/transform"


def _is_json_request(request) -> bool:
    media_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    return media_type == "application/json"


def create_app(
    cfg: EasyReadConfig | None = None,
    client: CompletionClient | None = None,
    *,
    global_limiter: RateLimiter | None = None,
    transform_limiter: RateLimiter | None = None,
) -> FastAPI:
    cfg = cfg or EasyReadConfig()
    configure_logging(
        level=cfg.log_level,
        fmt=cfg.log_format,
        secrets=[s for s in (cfg.openai_api_key,) if s],
    )
    client = client or OpenAICompletionClient(
        cfg.openai_api_key,
        base_url=cfg.openai_base_url,
        model=cfg.openai_model,
        temperature=cfg.temperature,
        timeout_seconds=cfg.upstream_timeout_seconds,
    )
    orchestrator = TransformOrchestrator(client)
    global_limiter = global_limiter or SlidingWindowRateLimiter(
        cfg.global_rate_limit_max, cfg.global_rate_limit_window_seconds
    )
    transform_limiter = transform_limiter or SlidingWindowRateLimiter(
        cfg.transform_rate_limit_max, cfg.transform_rate_limit_window_seconds
    )

    def _observe(path: str, status_code: int, started_at: float) -> None:
        server_requests_total.labels(path=path, status=str(status_code)).inc()
        server_request_latency_seconds.labels(path=path).observe(max(0.0, time.monotonic() - started_at))

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        maybe_start_metrics(enable=cfg.enable_metrics, bind=cfg.metrics_bind, port=cfg.metrics_port)
        try:
            yield
        finally:
            await client.close()

    app = FastAPI(
        title="easyread-generator",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if cfg.enable_api_docs else None,
        redoc_url="/redoc" if cfg.enable_api_docs else None,
        openapi_url="/openapi.json" if cfg.enable_api_docs else None,
    )
    install_middlewares(app, cfg=cfg, global_limiter=global_limiter)

    @app.exception_handler(TransformError)
    async def _transform_error_handler(request, exc: TransformError):
        server_errors_total.labels(kind=exc.kind).inc()
        if exc.status_code >= 500:
            log.warning("transform_error", kind=exc.kind, status_code=exc.status_code)
        _observe(request.url.path, exc.status_code, getattr(request.state, "started_at", time.monotonic()))
        return JSONResponse(status_code=exc.status_code, content=make_error_response(exc.message))

    # Only shapes the response body; Starlette still re-raises to the server afterwards.
    @app.exception_handler(Exception)
    async def _unexpected_error_handler(_request, exc: Exception):
        server_errors_total.labels(kind="server_error").inc()
        log.error("unhandled_error", error_type=type(exc).__name__)
        return JSONResponse(status_code=500, content=make_error_response(GENERIC_SERVER_MESSAGE))

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(TRANSFORM_PATH, response_model=TransformResponse)
    async def transform(request: Request):
        started_at = request.state.started_at = time.monotonic()
        if not transform_limiter.hit(client_key(request)):
            rate_limited_total.labels(scope="transform").inc()
            raise RateLimited(scope="transform")

        body = None
        if _is_json_request(request):
            try:
                body = await request.json()
            except (ValueError, RecursionError):
                body = None

        outcome = await orchestrator.run(body)
        if isinstance(outcome, TransformError):
            raise outcome

        _observe(TRANSFORM_PATH, 200, started_at)
        return JSONResponse(content=make_transform_response(outcome).model_dump(by_alias=True))

    if cfg.public_dir and os.path.isdir(cfg.public_dir):
        from fastapi.staticfiles import StaticFiles

        app.mount("/", StaticFiles(directory=cfg.public_dir, html=True), name="public")

    return app


app = create_app()


def main() -> None:  # pragma: no cover
    try:
        import uvicorn
    except ImportError as e:
        raise RuntimeError('Install the "server" extra: pip install -e ".[server]"') from e

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    uvicorn.run("easyread_generator.server:app", host=host, port=port)


if __name__ == "__main__":  # pragma: no cover
    main()
