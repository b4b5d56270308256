"""Context Cache — session-keyed store of loaded document pages.

Invariants:
    - Entries never expire implicitly; only clear() or a reload replaces them
    - Loads for the same session are serialized (single writer per session);
      get() is a lock-free read of the last completed load
    - A load that yields zero pages is a failure and leaves the entry untouched
    - Every content-source failure surfaces as ContextLoadError

Design Decisions:
    - asyncio.Lock per session id, created by the first load and dropped by
      the last one out, so idle sessions hold no lock
    - A waiter that finds the same source freshly loaded by the writer ahead of
      it reuses that entry instead of reading the source again
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from docpanel.core.agent_context import PageContent
from docpanel.core.collaborator_protocols import ContentSource
from docpanel.core.domain_types import SessionId
from docpanel.core.errors import ContextLoadError, ErrorContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedDocumentContext:
    source: str
    pages: tuple[PageContent, ...]
    loaded_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def total_words(self) -> int:
        return sum(p.word_count for p in self.pages)


class ContextCache:
    """Per-session document content with explicit load/get/clear."""

    def __init__(self, content_source: ContentSource):
        self._source = content_source
        self._entries: dict[SessionId, CachedDocumentContext] = {}
        self._locks: dict[SessionId, asyncio.Lock] = {}
        self._lock_users: dict[SessionId, int] = {}

    def get(self, session_id: SessionId) -> CachedDocumentContext | None:
        return self._entries.get(session_id)

    async def load(
        self, session_id: SessionId, source_locator: str,
    ) -> CachedDocumentContext:
        """Read pages from the content source and store them for the session."""
        seen = self._entries.get(session_id)
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                current = self._entries.get(session_id)
                if (current is not None and current is not seen
                        and current.source == source_locator):
                    return current
                return await self._read(session_id, source_locator)
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                del self._locks[session_id]

    async def _read(
        self, session_id: SessionId, source_locator: str,
    ) -> CachedDocumentContext:
        ctx = ErrorContext(session_id=session_id)
        try:
            pages = await self._source.load_pages(source_locator)
        except ContextLoadError:
            raise
        except Exception as e:
            raise ContextLoadError(source_locator, str(e), ctx) from e
        if not pages:
            raise ContextLoadError(source_locator, "no extractable text", ctx)

        entry = CachedDocumentContext(source=source_locator, pages=tuple(pages))
        self._entries[session_id] = entry
        logger.info(
            "Cached %d pages for session", entry.page_count,
            extra={"session_id": session_id, "page_count": entry.page_count},
        )
        return entry

    def clear(self, session_id: SessionId) -> bool:
        """Remove the session's entry. Returns whether one existed."""
        removed = self._entries.pop(session_id, None) is not None
        if removed:
            logger.info("Cleared document context", extra={"session_id": session_id})
        return removed

    def __len__(self) -> int:
        return len(self._entries)
