"""Session Stream Controller — public entry point: start, cancel, context load/clear.

Invariants:
    - At most one active stream per session: start() registers the new stream
      and cancels the prior one (its channel closes, it never emits finish)
      before awaiting anything else, so the latest call wins
    - A missing credential ends the call with one CREDENTIAL_MISSING error
      event, outcome REJECTED, no registry entry left, no provider call
    - A PDF stream without resolved pages ends with one DOCUMENT_NOT_LOADED
      error event before any provider call
    - cancel() never raises and never publishes an event
    - The registry entry is released in a finally path, and only if it still
      belongs to the finishing stream

Design Decisions:
    - One asyncio.Task per stream; the caller consumes the EventChannel, so a
      slow consumer never blocks the provider read
    - Collaborators constructor-injected (credentials, cache, backend, client
      factory); the registry is owned here, never a module global
    - Context resolution runs inside the task: a slow local PDF load does not
      delay start() returning the handle
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from docpanel.config import Settings, get_settings
from docpanel.core.agent_context import to_local_path
from docpanel.core.collaborator_protocols import (
    ClientFactory, CredentialProvider, ToolBackend,
)
from docpanel.core.domain_types import (
    OUTCOME_STATES, DocumentType, SessionId, StreamOutcome, StreamState,
)
from docpanel.core.errors import (
    CredentialMissingError, DocPanelError, ErrorContext,
)
from docpanel.infrastructure.observability import bind_session
from docpanel.schemas.agent import ContextStatus, StreamRequest
from docpanel.services.active_streams import ActiveStream, ActiveStreamRegistry
from docpanel.services.context_cache import ContextCache
from docpanel.services.context_resolver import ContextResolver, require_pages
from docpanel.services.event_channel import EventChannel
from docpanel.services.stream_events import unexpected_error_event
from docpanel.services.stream_helpers import build_messages
from docpanel.services.stream_multiplexer import StreamMultiplexer
from docpanel.services.tools_registry import get_toolset

logger = logging.getLogger(__name__)

SHUTDOWN_GRACE_SECONDS = 5.0


class StreamHandle:
    """Caller's view of one start() call."""

    def __init__(
        self,
        session_id: SessionId,
        channel: EventChannel,
        stream: ActiveStream | None = None,
        task: asyncio.Task | None = None,
        outcome: StreamOutcome | None = None,
    ):
        self.session_id = session_id
        self._channel = channel
        self._stream = stream
        self._task = task
        self._outcome = outcome

    def events(self) -> AsyncIterator[dict]:
        return self._channel.events()

    async def wait(self) -> StreamOutcome:
        if self._task is not None:
            return await self._task
        return self._outcome or StreamOutcome.REJECTED

    def cancel(self) -> bool:
        """Cancel this stream only (used when the consumer goes away)."""
        if self._stream is None:
            return False
        return self._stream.cancel()


class SessionStreamController:
    """Orchestrates document-contextual agent streams per session."""

    def __init__(
        self,
        *,
        credentials: CredentialProvider,
        cache: ContextCache,
        tool_backend: ToolBackend,
        client_factory: ClientFactory,
        settings: Settings | None = None,
        registry: ActiveStreamRegistry | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or ActiveStreamRegistry()
        self.credentials = credentials
        self.cache = cache
        self.resolver = ContextResolver(cache)
        self.tool_backend = tool_backend
        self.client_factory = client_factory

    # -- Streams -----------------------------------------------------------

    async def start(
        self,
        session_id: SessionId,
        request: StreamRequest,
        user_id: str | None = None,
    ) -> StreamHandle:
        """Begin a stream for the session, superseding any in-flight one.

        The new stream is registered (and the prior one cancelled) before
        any await on collaborators, so the most recent call always wins.
        """
        channel = EventChannel()
        ctx = ErrorContext(
            session_id=session_id, document_type=request.document_type.value,
        )
        stream = ActiveStream(
            session_id=session_id,
            document_type=request.document_type,
            channel=channel,
        )
        await self.registry.replace(session_id, stream)
        try:
            credential = await self.credentials.resolve_credential(request.provider)
        except BaseException:
            await self._withdraw(stream)
            raise

        if stream.token.cancelled:
            logger.info("Stream superseded before start",
                extra={"session_id": session_id})
            return StreamHandle(
                session_id, channel, stream, outcome=StreamOutcome.CANCELLED,
            )
        if credential is None:
            await self._withdraw(stream)
            error = CredentialMissingError(request.provider, ctx)
            logger.warning("Stream rejected: %s", error.message,
                extra={"session_id": session_id, "error_code": error.code,
                       "outcome": StreamOutcome.REJECTED.value})
            channel.publish(error.to_stream_event())
            channel.close()
            return StreamHandle(
                session_id, channel, outcome=StreamOutcome.REJECTED,
            )

        stream.task = asyncio.create_task(
            self._run_stream(stream, request, credential, user_id, ctx),
            name=f"agent-stream:{session_id}",
        )
        logger.info("Stream started", extra={
            "session_id": session_id,
            "document_type": request.document_type.value,
        })
        return StreamHandle(session_id, channel, stream, stream.task)

    async def _withdraw(self, stream: ActiveStream) -> None:
        """Drop a stream that never got a task. Its channel stays open."""
        stream.state = OUTCOME_STATES[StreamOutcome.REJECTED]
        await self.registry.release(stream.session_id, stream)

    async def cancel(self, session_id: SessionId) -> bool:
        """Signal the session's active stream. Idempotent, never raises."""
        cancelled = await self.registry.cancel(session_id)
        if cancelled:
            logger.info("Stream cancelled", extra={"session_id": session_id})
        return cancelled

    async def _run_stream(
        self, stream, request, credential, user_id, ctx,
    ) -> StreamOutcome:
        session_id = stream.session_id
        channel = stream.channel
        outcome = StreamOutcome.ERRORED
        try:
            with bind_session(session_id):
                outcome = await self._stream_body(
                    stream, request, credential, user_id, ctx,
                )
        except DocPanelError as e:
            logger.warning("Stream aborted: %s", e.message,
                extra={"session_id": session_id, "error_code": e.code})
            channel.publish(e.to_stream_event())
        except Exception as e:
            logger.error("Unexpected error starting stream: %s", e,
                extra={"session_id": session_id}, exc_info=True)
            channel.publish(unexpected_error_event())
        finally:
            if stream.token.cancelled:
                outcome = StreamOutcome.CANCELLED
            if stream.state == StreamState.STREAMING:
                stream.state = OUTCOME_STATES[outcome]
            channel.close()
            await self.registry.release(session_id, stream)
            logger.info("Stream ended", extra={
                "session_id": session_id, "outcome": outcome.value,
            })
        return outcome

    async def _stream_body(
        self, stream, request, credential, user_id, ctx,
    ) -> StreamOutcome:
        if stream.token.cancelled:
            return StreamOutcome.CANCELLED
        context = await self.resolver.resolve(
            stream.session_id, request.document_type, request.context, user_id,
        )
        if request.document_type == DocumentType.PDF:
            require_pages(context)
        if stream.token.cancelled:
            return StreamOutcome.CANCELLED

        toolset = get_toolset(context, request.document_type, self.tool_backend)
        multiplexer = StreamMultiplexer(
            self.client_factory(credential),
            stream.channel,
            stream.token,
            model=request.model_id or self.settings.agent_model,
            max_tokens=self.settings.agent_max_tokens,
            max_steps=self.settings.agent_max_steps,
            error_context=ctx,
        )
        return await multiplexer.run(
            toolset.system_prompt, toolset.tools,
            build_messages(request), toolset.dispatch,
        )

    # -- Document context --------------------------------------------------

    async def load_context(
        self, session_id: SessionId, source_locator: str,
    ) -> ContextStatus:
        """Load a document into the session cache. Raises ContextLoadError."""
        entry = await self.cache.load(session_id, to_local_path(source_locator))
        return ContextStatus(
            loaded=True,
            source=entry.source,
            page_count=entry.page_count,
            total_words=entry.total_words,
        )

    def clear_context(self, session_id: SessionId) -> None:
        self.cache.clear(session_id)

    def context_status(self, session_id: SessionId) -> ContextStatus:
        entry = self.cache.get(session_id)
        if entry is None:
            return ContextStatus(loaded=False)
        return ContextStatus(
            loaded=True,
            source=entry.source,
            page_count=entry.page_count,
            total_words=entry.total_words,
        )

    # -- Lifecycle ---------------------------------------------------------

    async def shutdown(self) -> None:
        """Cancel every active stream and wait for their tasks to end."""
        streams = await self.registry.cancel_all()
        tasks = [s.task for s in streams if s.task is not None]
        if not tasks:
            return
        _, pending = await asyncio.wait(tasks, timeout=SHUTDOWN_GRACE_SECONDS)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Stream controller shut down (%d streams)", len(streams))
