"""Stream Event Builders — the closed event taxonomy as plain dict constructors.

Invariants:
    - Every event is {"type": <EventType value>, "data": {...}}
    - tool-call-start always carries args (empty dict until the input is known)
    - finish usage counts are ints, zero when the provider omitted them

Design Decisions:
    - Builders over event classes: the dicts go straight to the channel and to
      the SSE encoder without a serialization step
"""

from typing import Any

from docpanel.core.domain_types import FINISH_CLASS_EVENTS, EventType
from docpanel.core.errors import ErrorSeverity


def text_delta_event(delta: str) -> dict:
    return {"type": EventType.TEXT_DELTA.value, "data": {"delta": delta}}


def text_done_event(text: str) -> dict:
    return {"type": EventType.TEXT_DONE.value, "data": {"text": text}}


def tool_call_start_event(
    tool_name: str, tool_call_id: str, args: dict | None = None,
) -> dict:
    return {
        "type": EventType.TOOL_CALL_START.value,
        "data": {
            "tool_name": tool_name,
            "tool_call_id": tool_call_id,
            "args": args or {},
        },
    }


def tool_call_done_event(
    tool_name: str, tool_call_id: str, result: Any,
) -> dict:
    return {
        "type": EventType.TOOL_CALL_DONE.value,
        "data": {
            "tool_name": tool_name,
            "tool_call_id": tool_call_id,
            "result": result,
        },
    }


def finish_event(prompt_tokens: int, completion_tokens: int) -> dict:
    return {
        "type": EventType.FINISH.value,
        "data": {
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
            },
        },
    }


def unexpected_error_event() -> dict:
    return {
        "type": EventType.ERROR.value,
        "data": {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "severity": ErrorSeverity.CRITICAL.value,
            "recoverable": False,
        },
    }


def is_terminal(event: dict) -> bool:
    return event.get("type") in FINISH_CLASS_EVENTS
