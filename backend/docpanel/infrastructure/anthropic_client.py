"""Resilient Anthropic Client — wraps AsyncAnthropic streaming with error mapping.

Invariants:
    - Every SDK failure surfaces as ProviderAPIError (core/errors.py), whether it
      happens during connection setup or mid-stream
    - CancelledError (BaseException) passes through uncaught
    - APITimeoutError is checked before its base APIConnectionError
    - Leaving the stream context closes the underlying HTTP response
    - No retries: a failed stream is reported once and the caller decides

Design Decisions:
    - Wrapper over raw client: isolates SDK error types from the multiplexer
    - AnthropicClientPool reuses one AsyncAnthropic per credential so streams
      share a connection pool; closed once on shutdown
"""

import logging
from contextlib import asynccontextmanager

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from docpanel.core.collaborator_protocols import Credential
from docpanel.core.errors import ErrorContext, ProviderAPIError

logger = logging.getLogger(__name__)

# OverloadedError (HTTP 529) is detected by status code rather than a private import.
_OVERLOADED_STATUS = 529


def _is_overloaded(e: APIError) -> bool:
    """Check if error is Anthropic 529 Overloaded."""
    return isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS


class ResilientAnthropicClient:
    """Wraps the Anthropic async client with timeouts and error mapping."""

    def __init__(self, credential: Credential, timeout_seconds: int = 300):
        self.client = anthropic.AsyncAnthropic(
            api_key=credential.api_key,
            auth_token=credential.auth_token,
            timeout=timeout_seconds,
        )

    @asynccontextmanager
    async def stream_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system,
        tools: list,
        messages: list,
        context: ErrorContext | None = None,
    ):
        """Stream message with Anthropic error -> ProviderAPIError mapping.

        Catches errors from both connection setup AND mid-stream (errors from
        the caller's async for propagate through the yield).
        """
        try:
            cm = self.client.messages.stream(
                model=model, max_tokens=max_tokens,
                system=system, tools=tools, messages=messages,
            )
            async with cm as stream:
                yield stream
        except RateLimitError as e:
            raise ProviderAPIError(
                "Rate limit exceeded (streaming)",
                "rate_limit",
                retry_after_ms=self._extract_retry_after(e),
                context=context,
            )
        except APITimeoutError:
            raise ProviderAPIError(
                "API timeout during stream", "timeout", context=context,
            )
        except APIConnectionError as e:
            raise ProviderAPIError(
                f"Connection error during stream: {e}",
                "connection_error",
                context=context,
            )
        except InternalServerError as e:
            raise ProviderAPIError(
                f"Provider failure during stream: {e}",
                "server_error",
                context=context,
            )
        except APIError as e:
            if _is_overloaded(e):
                raise ProviderAPIError(
                    "Anthropic API overloaded (529)",
                    "overloaded",
                    context=context,
                )
            raise ProviderAPIError(
                str(e), "client_error", context=context,
            )

    async def close(self) -> None:
        await self.client.close()

    def _extract_retry_after(self, error: RateLimitError) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        response = getattr(error, "response", None)
        if response is None:
            return None
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None


class AnthropicClientPool:
    """One ResilientAnthropicClient per credential, reused across streams."""

    def __init__(self, timeout_seconds: int = 300):
        self.timeout_seconds = timeout_seconds
        self._clients: dict[Credential, ResilientAnthropicClient] = {}

    def get(self, credential: Credential) -> ResilientAnthropicClient:
        client = self._clients.get(credential)
        if client is None:
            client = ResilientAnthropicClient(
                credential, timeout_seconds=self.timeout_seconds,
            )
            self._clients[credential] = client
            logger.info("Created Anthropic client (%r)", credential)
        return client

    async def aclose(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.close()
