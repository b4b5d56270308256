"""Agent Panel Routes — SSE framing, cancel, context endpoints, error envelopes.

Invariants:
    - Every SSE frame is `data: <json>\\n\\n`, last frame is the terminal event
    - Missing credential still answers 200 with a single error frame
    - Context load failure -> 422 CONTEXT_LOAD_FAILED envelope
    - Invalid bodies -> 400 VALIDATION_ERROR with field details
    - Configuration errors say "configure"; provider retry hints set Retry-After

Design Decisions:
    - ASGITransport buffers the whole body, so the stream runs to completion
      before assertions (no lifespan; controller injected via dependency override)
"""

import json

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from docpanel.api.error_handlers import register_error_handlers
from docpanel.core.errors import CredentialMissingError, ProviderAPIError
from docpanel.main import app

from tests.services.mock_anthropic import text_response, tool_response


def _frames(body: str) -> list[dict]:
    return [
        json.loads(chunk[len("data: "):])
        for chunk in body.split("\n\n")
        if chunk.startswith("data: ")
    ]


# ==============================================================================
# Streaming
# ==============================================================================


async def test_stream_emits_sse_frames(client, client_factory):
    client_factory.queue(text_response("Hello there."))

    res = await client.post("/api/v1/agent-panel/s1/stream", json={
        "document_type": "spreadsheet", "prompt": "hi",
    })

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/event-stream")
    assert res.headers["cache-control"] == "no-cache"
    frames = _frames(res.text)
    assert [f["type"] for f in frames] == ["text-delta", "text-done", "finish"]
    assert frames[1]["data"]["text"] == "Hello there."


async def test_stream_tool_frames_paired(client, client_factory):
    client_factory.queue(
        tool_response("insert_heading", {"text": "Intro", "level": 1}),
        text_response("Added."),
    )

    res = await client.post("/api/v1/agent-panel/s1/stream", json={
        "document_type": "document", "prompt": "add a heading",
        "context": {"document_id": "doc-7"},
    })

    frames = _frames(res.text)
    start = next(f for f in frames if f["type"] == "tool-call-start")
    done = next(f for f in frames if f["type"] == "tool-call-done")
    assert start["data"]["tool_call_id"] == done["data"]["tool_call_id"]
    assert done["data"]["result"]["status"] == "ok"
    assert frames[-1]["type"] == "finish"


async def test_stream_without_credential_single_error_frame(
    client, client_factory, credentials,
):
    credentials.credential = None

    res = await client.post("/api/v1/agent-panel/s1/stream", json={
        "document_type": "document", "prompt": "hi",
    })

    assert res.status_code == 200
    frames = _frames(res.text)
    assert len(frames) == 1
    assert frames[0]["data"]["code"] == "CREDENTIAL_MISSING"
    assert not client_factory.invoked


async def test_stream_user_id_header_accepted(client, client_factory):
    client_factory.queue(text_response("ok"))

    res = await client.post(
        "/api/v1/agent-panel/s1/stream",
        json={"document_type": "spreadsheet", "prompt": "hi"},
        headers={"X-User-Id": "user-42"},
    )

    assert _frames(res.text)[-1]["type"] == "finish"


async def test_blank_prompt_rejected_with_field_details(client, client_factory):
    res = await client.post("/api/v1/agent-panel/s1/stream", json={
        "document_type": "pdf", "prompt": "   ",
    })

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert any(d["field"].endswith("prompt") for d in error["details"])
    assert not client_factory.invoked


async def test_unknown_document_type_rejected(client):
    res = await client.post("/api/v1/agent-panel/s1/stream", json={
        "document_type": "presentation", "prompt": "hi",
    })

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ==============================================================================
# Cancel
# ==============================================================================


async def test_cancel_without_stream_reports_false(client):
    res = await client.post("/api/v1/agent-panel/nobody/cancel")

    assert res.status_code == 200
    assert res.json() == {"success": False}


# ==============================================================================
# Context
# ==============================================================================


async def test_context_load_status_and_clear(client):
    res = await client.post("/api/v1/agent-panel/s1/context", json={
        "source_locator": "/docs/atlas.pdf",
    })
    assert res.status_code == 200
    assert res.json() == {
        "loaded": True, "source": "/docs/atlas.pdf",
        "page_count": 3, "total_words": res.json()["total_words"],
    }
    assert res.json()["total_words"] > 0

    status = await client.get("/api/v1/agent-panel/s1/context")
    assert status.json()["loaded"] is True
    assert status.json()["page_count"] == 3

    cleared = await client.delete("/api/v1/agent-panel/s1/context")
    assert cleared.json() == {"success": True}

    after = await client.get("/api/v1/agent-panel/s1/context")
    assert after.json()["loaded"] is False
    assert after.json()["page_count"] == 0


async def test_context_load_failure_returns_422(client):
    res = await client.post("/api/v1/agent-panel/s1/context", json={
        "source_locator": "/docs/missing.pdf",
    })

    assert res.status_code == 422
    error = res.json()["error"]
    assert error["code"] == "CONTEXT_LOAD_FAILED"
    assert error["context"]["session_id"] == "s1"


async def test_clear_context_idempotent(client):
    res = await client.delete("/api/v1/agent-panel/never-loaded/context")

    assert res.status_code == 200
    assert res.json() == {"success": True}


# ==============================================================================
# Health
# ==============================================================================


async def test_health_liveness(client):
    res = await client.get("/api/v1/health/")

    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_readiness_follows_controller(client, controller):
    assert getattr(app.state, "controller", None) is None
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503

    app.state.controller = controller
    try:
        res = await client.get("/api/v1/health/ready")
    finally:
        del app.state.controller
    assert res.status_code == 200
    assert res.json() == {
        "status": "ready", "active_streams": 0, "cached_documents": 0,
    }


# ==============================================================================
# Error envelopes
# ==============================================================================


def _raising_app(error):
    error_app = FastAPI()
    register_error_handlers(error_app)

    @error_app.get("/sessions/{session_id}/boom")
    async def boom(session_id: str):
        raise error

    return error_app


async def _get(target_app, path):
    async with AsyncClient(
        transport=ASGITransport(app=target_app), base_url="http://test",
    ) as ac:
        return await ac.get(path)


async def test_configuration_error_marked_not_retryable():
    res = await _get(_raising_app(CredentialMissingError("anthropic")), "/sessions/s7/boom")

    assert res.status_code == 401
    error = res.json()["error"]
    assert error["code"] == "CREDENTIAL_MISSING"
    assert error["action"] == "configure"
    assert error["retryable"] is False
    assert error["context"]["session_id"] == "s7"
    assert "retry-after" not in res.headers


async def test_provider_error_sets_retry_after():
    error = ProviderAPIError("slow down", "rate_limit", retry_after_ms=2500)

    res = await _get(_raising_app(error), "/sessions/s1/boom")

    assert res.status_code == 503
    assert res.headers["retry-after"] == "3"
    assert res.json()["error"]["retryable"] is True
    assert res.json()["error"]["context"]["retry_after_ms"] == 2500
