"""Event Channel — ordered, single-consumer event stream for one start() call.

Invariants:
    - Events are delivered in publish order
    - After close(), publish() drops the event and returns False
    - At most one terminal event (error/finish) is accepted; later ones are dropped
    - events() ends once the channel is closed and drained

Design Decisions:
    - asyncio.Queue plus a sentinel: the consumer never polls
    - Closing is synchronous so cancel() can seal the channel without awaiting
"""

import asyncio
from collections.abc import AsyncIterator

from docpanel.services.stream_events import is_terminal

_CLOSED = object()


class EventChannel:
    """Per-call event stream handed to the caller of start()."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._terminal_sent = False

    def publish(self, event: dict) -> bool:
        if self._closed or self._terminal_sent:
            return False
        if is_terminal(event):
            self._terminal_sent = True
        self._queue.put_nowait(event)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def events(self) -> AsyncIterator[dict]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
