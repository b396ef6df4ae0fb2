from __future__ import annotations

import os

from pydantic import BaseModel, Field

OPENAI_API_BASE = "https://api.openai.com/v1"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class EasyReadConfig(BaseModel):
    environment: str = Field(default_factory=lambda: os.getenv("APP_ENV", "development"))

    # Completion provider
    openai_api_key: str | None = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY"))
    openai_base_url: str = Field(default_factory=lambda: os.getenv("OPENAI_BASE_URL", OPENAI_API_BASE))
    openai_model: str = Field(default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o-mini"))
    temperature: float = Field(default_factory=lambda: float(os.getenv("OPENAI_TEMPERATURE", "0.2")))
    upstream_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "12"))
    )

    # Observability
    enable_metrics: bool = Field(default_factory=lambda: _env_flag("ENABLE_METRICS"))
    metrics_bind: str = Field(default_factory=lambda: os.getenv("METRICS_BIND", "127.0.0.1"))
    metrics_port: int = Field(default_factory=lambda: int(os.getenv("METRICS_PORT", "9109")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = Field(default_factory=lambda: os.getenv("LOG_FORMAT", "json"))

    # Server hardening
    enable_api_docs: bool = Field(default_factory=lambda: _env_flag("ENABLE_API_DOCS"))
    max_request_body_bytes: int = Field(
        default_factory=lambda: int(os.getenv("MAX_REQUEST_BODY_BYTES", str(200 * 1024)))
    )
    global_rate_limit_max: int = Field(default_factory=lambda: int(os.getenv("GLOBAL_RATE_LIMIT_MAX", "60")))
    global_rate_limit_window_seconds: float = Field(
        default_factory=lambda: float(os.getenv("GLOBAL_RATE_LIMIT_WINDOW_SECONDS", "60"))
    )
    transform_rate_limit_max: int = Field(
        default_factory=lambda: int(os.getenv("TRANSFORM_RATE_LIMIT_MAX", "60"))
    )
    transform_rate_limit_window_seconds: float = Field(
        default_factory=lambda: float(os.getenv("TRANSFORM_RATE_LIMIT_WINDOW_SECONDS", "600"))
    )

    # Static UI
    public_dir: str | None = Field(default_factory=lambda: os.getenv("PUBLIC_DIR"))
