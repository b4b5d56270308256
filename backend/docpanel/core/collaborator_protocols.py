"""Boundary Protocols — contracts between the orchestrator core and its collaborators.

Invariants:
    - Core and services NEVER import concrete collaborators; implementations
      are injected into SessionStreamController by the shell (main.py, tests)
    - A credential provider returning None is terminal for that call (no retry)
    - ContentSource.load_pages returns pages in document order

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no base class
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Protocol

from docpanel.core.agent_context import AgentContext, PageContent
from docpanel.core.errors import ErrorContext


@dataclass(frozen=True)
class Credential:
    """Opaque provider credential: an API key or an OAuth bearer token."""
    provider: str
    api_key: str | None = None
    auth_token: str | None = None

    def __repr__(self) -> str:
        kind = "auth_token" if self.auth_token else "api_key"
        return f"Credential(provider={self.provider!r}, kind={kind})"


class CredentialProvider(Protocol):
    async def resolve_credential(self, provider: str) -> Credential | None: ...


class ContentSource(Protocol):
    async def load_pages(self, source_locator: str) -> list[PageContent]: ...


class ToolBackend(Protocol):
    """Executes document side effects (cell writes, inserts, viewer navigation)."""
    async def apply(
        self, action: str, payload: dict, context: AgentContext,
    ) -> dict: ...


class ModelClient(Protocol):
    """Streaming model endpoint. stream_message yields an async-iterable stream
    that also exposes `await stream.get_final_message()`."""
    def stream_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: Any,
        tools: list,
        messages: list,
        context: ErrorContext | None = None,
    ) -> AbstractAsyncContextManager[Any]: ...


ClientFactory = Callable[[Credential], ModelClient]
