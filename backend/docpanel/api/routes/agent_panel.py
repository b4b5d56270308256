"""Agent Panel Routes — SSE streaming, cancellation and document context per session.

Invariants:
    - One StreamingResponse per start(); the generator only relays the handle's events
    - A client disconnect cancels that stream only, never a newer one
    - Context load failures surface as the 422 CONTEXT_LOAD_FAILED envelope
    - cancel always answers 200 with {"success": bool}

Design Decisions:
    - Controller taken from app.state through a dependency so tests can override it
    - SSE headers disable proxy/browser buffering of small chunks
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import StreamingResponse

from docpanel.schemas.agent import (
    ContextStatus, LoadContextRequest, StreamRequest,
)
from docpanel.services.stream_controller import SessionStreamController

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/agent-panel", tags=["agent-panel"])

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def get_controller(request: Request) -> SessionStreamController:
    return request.app.state.controller


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


@router.post("/{session_id}/stream")
async def stream_agent(
    session_id: str,
    body: StreamRequest,
    controller: SessionStreamController = Depends(get_controller),
    x_user_id: str | None = Header(default=None),
):
    handle = await controller.start(session_id, body, user_id=x_user_id)

    async def event_generator():
        try:
            async for event in handle.events():
                yield sse_line(event)
        except asyncio.CancelledError:
            logger.info("Client disconnected from stream",
                extra={"session_id": session_id})
            raise
        finally:
            # no-op once the stream reached a terminal state
            handle.cancel()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


@router.post("/{session_id}/cancel")
async def cancel_stream(
    session_id: str,
    controller: SessionStreamController = Depends(get_controller),
):
    return {"success": await controller.cancel(session_id)}


@router.post("/{session_id}/context", response_model=ContextStatus)
async def load_context(
    session_id: str,
    body: LoadContextRequest,
    controller: SessionStreamController = Depends(get_controller),
):
    return await controller.load_context(session_id, body.source_locator)


@router.get("/{session_id}/context", response_model=ContextStatus)
async def get_context_status(
    session_id: str,
    controller: SessionStreamController = Depends(get_controller),
):
    return controller.context_status(session_id)


@router.delete("/{session_id}/context")
async def clear_context(
    session_id: str,
    controller: SessionStreamController = Depends(get_controller),
):
    controller.clear_context(session_id)
    return {"success": True}
