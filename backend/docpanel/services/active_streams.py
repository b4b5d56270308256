"""Active Stream Registry — at most one in-flight stream per session.

Invariants:
    - replace() is check-then-set under one lock: the prior stream of the
      session is cancelled before the new one becomes visible
    - release() removes the entry only if it is still the same stream, so a
      finishing stream never evicts its successor
    - cancel() on a session without a stream is a no-op returning False
    - A cancelled stream's channel is closed synchronously: nothing it emits
      afterwards reaches the caller

Design Decisions:
    - One registry-wide asyncio.Lock: sessions are few, operations are O(1)
    - CancellationToken wraps asyncio.Event; checked cooperatively per chunk
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from docpanel.core.domain_types import DocumentType, SessionId, StreamState
from docpanel.services.event_channel import EventChannel

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()


@dataclass
class ActiveStream:
    session_id: SessionId
    document_type: DocumentType
    channel: EventChannel
    token: CancellationToken = field(default_factory=CancellationToken)
    started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    state: StreamState = StreamState.STREAMING
    task: asyncio.Task | None = None

    def cancel(self) -> bool:
        """Signal and seal this stream. Returns False if already terminal."""
        if self.state != StreamState.STREAMING:
            return False
        self.state = StreamState.CANCELLED
        self.token.cancel()
        self.channel.close()
        return True


class ActiveStreamRegistry:
    """Lock-guarded map session_id -> ActiveStream."""

    def __init__(self) -> None:
        self._streams: dict[SessionId, ActiveStream] = {}
        self._lock = asyncio.Lock()

    async def replace(self, session_id: SessionId, stream: ActiveStream) -> None:
        async with self._lock:
            prior = self._streams.get(session_id)
            if prior is not None and prior.cancel():
                logger.info(
                    "Superseded active stream",
                    extra={"session_id": session_id},
                )
            self._streams[session_id] = stream

    async def cancel(self, session_id: SessionId) -> bool:
        async with self._lock:
            stream = self._streams.pop(session_id, None)
        if stream is None:
            return False
        return stream.cancel()

    async def release(self, session_id: SessionId, stream: ActiveStream) -> bool:
        async with self._lock:
            if self._streams.get(session_id) is not stream:
                return False
            del self._streams[session_id]
            return True

    async def cancel_all(self) -> list[ActiveStream]:
        async with self._lock:
            streams = list(self._streams.values())
            self._streams.clear()
        for stream in streams:
            stream.cancel()
        return streams

    def __len__(self) -> int:
        return len(self._streams)
