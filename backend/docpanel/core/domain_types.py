"""Domain Types — enums and aliases shared by every layer.

Invariants:
    - DocumentType is the closed set of capability variants (pdf, spreadsheet, document)
    - EventType is the closed stream event taxonomy; values are the wire tags
    - StreamState covers the per-session lifecycle idle -> streaming -> terminal -> idle

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
    - SessionId NewType: zero runtime cost, keys the registry and the cache
"""

from enum import Enum
from typing import NewType


SessionId = NewType("SessionId", str)


class DocumentType(str, Enum):
    PDF = "pdf"
    SPREADSHEET = "spreadsheet"
    DOCUMENT = "document"


class EventType(str, Enum):
    TEXT_DELTA = "text-delta"
    TEXT_DONE = "text-done"
    TOOL_CALL_START = "tool-call-start"
    TOOL_CALL_DONE = "tool-call-done"
    ERROR = "error"
    FINISH = "finish"


# At most one of these per stream, and it is always the last event.
FINISH_CLASS_EVENTS = frozenset({EventType.ERROR, EventType.FINISH})


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class StreamOutcome(str, Enum):
    """Terminal result of one start() call, as seen by the caller."""
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"
    REJECTED = "rejected"  # configuration error before any provider call


OUTCOME_STATES: dict[StreamOutcome, StreamState] = {
    StreamOutcome.COMPLETED: StreamState.COMPLETED,
    StreamOutcome.ERRORED: StreamState.ERRORED,
    StreamOutcome.CANCELLED: StreamState.CANCELLED,
    StreamOutcome.REJECTED: StreamState.IDLE,
}
