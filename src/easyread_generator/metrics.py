from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

server_requests_total = Counter(
    "easyread_http_requests_total",
    "Total HTTP requests handled by server",
    labelnames=["path", "status"],
)

server_request_latency_seconds = Histogram(
    "easyread_http_request_latency_seconds",
    "HTTP request latency (seconds)",
    buckets=[0.05, 0.1, 0.3, 0.5, 1, 2, 5, 10, 15, 30],
    labelnames=["path"],
)

server_errors_total = Counter(
    "easyread_errors_total",
    "Total error responses returned by server",
    labelnames=["kind"],
)

rate_limited_total = Counter(
    "easyread_rate_limited_total",
    "Requests rejected by a rate limiter",
    labelnames=["scope"],
)

upstream_calls_total = Counter(
    "easyread_upstream_calls_total",
    "Outbound completion calls",
    labelnames=["outcome"],
)

upstream_latency_seconds = Histogram(
    "easyread_upstream_latency_seconds",
    "Outbound completion call latency (seconds)",
    buckets=[0.1, 0.3, 0.5, 1, 2, 5, 8, 12, 15],
)

completion_attempts_total = Counter(
    "easyread_completion_attempts_total",
    "Completion attempts by attempt number and extraction outcome",
    labelnames=["attempt", "outcome"],
)


def maybe_start_metrics(*, enable: bool, bind: str, port: int) -> None:
    if not enable:
        return
    start_http_server(port, addr=bind)
