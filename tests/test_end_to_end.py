import asyncio
import json

import httpx
import pytest

from easyread_generator.client import OpenAICompletionClient
from easyread_generator.config import EasyReadConfig


def _completion(content: str) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def _openai_client(handler, *, timeout_seconds: float = 12) -> OpenAICompletionClient:
    return OpenAICompletionClient(
        "sk-test-0123456789",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        base_url="https://provider.test/v1",
        timeout_seconds=timeout_seconds,
    )


async def _transform(app, text: str = "Hello world") -> httpx.Response:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post("/api/transform", json={"text": text})


@pytest.mark.asyncio
async def test_well_formed_first_reply_returns_200():
    pytest.importorskip("fastapi")
    from easyread_generator.server import create_app

    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=_completion('{"summary":"S","easyRead":"E"}'))

    app = create_app(cfg=EasyReadConfig(enable_metrics=False), client=_openai_client(handler))
    resp = await _transform(app)

    assert resp.status_code == 200
    assert resp.json() == {"summary": "S", "easyRead": "E"}
    assert len(bodies) == 1
    assert "Hello world" in bodies[0]["messages"][1]["content"]


@pytest.mark.asyncio
async def test_second_attempt_repairs_malformed_reply():
    pytest.importorskip("fastapi")
    from easyread_generator.server import create_app

    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        if len(bodies) == 1:
            return httpx.Response(200, json=_completion("Here is an easy read version of your text."))
        return httpx.Response(200, json=_completion('```json\n{"summary":"S2","easyRead":"E2"}\n```'))

    app = create_app(cfg=EasyReadConfig(enable_metrics=False), client=_openai_client(handler))
    resp = await _transform(app)

    assert resp.status_code == 200
    assert resp.json() == {"summary": "S2", "easyRead": "E2"}
    assert len(bodies) == 2
    assert len(bodies[1]["messages"]) == 3


@pytest.mark.asyncio
async def test_never_valid_json_returns_malformed_500():
    pytest.importorskip("fastapi")
    from easyread_generator.server import create_app

    calls = {"n": 0}

    def handler(_: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(200, json=_completion("I am not JSON."))

    app = create_app(cfg=EasyReadConfig(enable_metrics=False), client=_openai_client(handler))
    resp = await _transform(app)

    assert resp.status_code == 500
    assert resp.json() == {"error": "The AI response was malformed. Please try again."}
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_hung_upstream_times_out_and_is_cancelled():
    pytest.importorskip("fastapi")
    from easyread_generator.server import create_app

    cancelled = asyncio.Event()
    calls = {"n": 0}

    async def handler(_: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return httpx.Response(200, json=_completion('{"summary":"S","easyRead":"E"}'))

    app = create_app(
        cfg=EasyReadConfig(enable_metrics=False),
        client=_openai_client(handler, timeout_seconds=0.05),
    )
    resp = await _transform(app)

    assert resp.status_code == 500
    assert resp.json() == {"error": "The request took too long, please try again."}
    assert cancelled.is_set()
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_crossing_transform_rate_window_returns_429():
    pytest.importorskip("fastapi")
    from easyread_generator.server import create_app

    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion('{"summary":"S","easyRead":"E"}'))

    cfg = EasyReadConfig(enable_metrics=False, transform_rate_limit_max=2)
    app = create_app(cfg=cfg, client=_openai_client(handler))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        statuses = []
        for _ in range(3):
            resp = await client.post("/api/transform", json={"text": "Hello world"})
            statuses.append(resp.status_code)
        health = await client.get("/health")

    assert statuses == [200, 200, 429]
    assert resp.json() == {"error": "Too many requests, please try again later."}
    assert health.status_code == 200


@pytest.mark.asyncio
async def test_provider_error_body_is_not_exposed():
    pytest.importorskip("fastapi")
    from easyread_generator.server import create_app

    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided: sk-test-..."}})

    app = create_app(cfg=EasyReadConfig(enable_metrics=False), client=_openai_client(handler))
    resp = await _transform(app)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error. Please try again."}


@pytest.mark.asyncio
async def test_non_json_gateway_body_is_not_retried():
    pytest.importorskip("fastapi")
    from easyread_generator.server import create_app

    calls = {"n": 0}

    def handler(_: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(200, text="<html>gateway</html>")

    app = create_app(cfg=EasyReadConfig(enable_metrics=False), client=_openai_client(handler))
    resp = await _transform(app)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error. Please try again."}
    assert calls["n"] == 1
