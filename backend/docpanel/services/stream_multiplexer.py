"""Stream Event Multiplexer — relays model output and tool activity as ordered events.

Invariants:
    - The cancellation token is checked before each consumed chunk and before
      every tool call; once set, nothing else is published
    - tool-call-start(id) is published before tool-call-done(id), at most once per id
    - Exactly one terminal event on a non-cancelled run: finish (after
      text-done) on success, error otherwise; never text-done after an error
    - Tool failures never raise: they come back as {"status": "error"} results
    - Usage is summed over every model turn, zero-filled

Design Decisions:
    - Each model turn is one stream_message() context; leaving it on cancel
      closes the provider connection
    - tool-call-start is published when the tool_use block closes, so args are
      complete; blocks whose stop event never arrived are started from the
      final message instead
    - get_final_message() for tool execution (no manual block reconstruction)
    - No retries inside the stream: a provider error ends it
"""

import logging
from typing import Any

from docpanel.core.domain_types import StreamOutcome
from docpanel.core.errors import AgentStepLimitError, DocPanelError, ErrorContext
from docpanel.core.collaborator_protocols import ModelClient
from docpanel.services.active_streams import CancellationToken
from docpanel.services.event_channel import EventChannel
from docpanel.services.stream_events import (
    finish_event, text_delta_event, text_done_event,
    tool_call_done_event, tool_call_start_event, unexpected_error_event,
)
from docpanel.services.stream_helpers import (
    serialize_content, summarize_web_results, tool_result_block,
    tool_use_blocks, usage_tokens, with_system_cache, with_tools_cache,
)
from docpanel.services.tool_dispatch import ToolDispatch

logger = logging.getLogger(__name__)

_TOOL_BLOCKS = frozenset({"tool_use", "server_tool_use"})


class StreamMultiplexer:
    """Runs the model/tool loop for one stream and publishes its events."""

    def __init__(
        self,
        client: ModelClient,
        channel: EventChannel,
        token: CancellationToken,
        *,
        model: str,
        max_tokens: int,
        max_steps: int,
        error_context: ErrorContext,
    ):
        self.client = client
        self.channel = channel
        self.token = token
        self.model = model
        self.max_tokens = max_tokens
        self.max_steps = max_steps
        self.ctx = error_context
        self._text: list[str] = []
        self._started: set[str] = set()
        self._pending: dict[int, tuple[str, str]] = {}
        self.input_tokens = 0
        self.output_tokens = 0

    @property
    def _log_extra(self) -> dict:
        return {
            "session_id": self.ctx.session_id,
            "document_type": self.ctx.document_type,
        }

    async def run(
        self,
        system: str,
        tools: list[dict],
        messages: list[dict],
        dispatch: ToolDispatch,
    ) -> StreamOutcome:
        try:
            return await self._loop(system, tools, messages, dispatch)
        except DocPanelError as e:
            if self.token.cancelled:
                return StreamOutcome.CANCELLED
            logger.error("Stream failed: %s", e.message,
                extra={**self._log_extra, "error_code": e.code})
            self.channel.publish(e.to_stream_event())
            return StreamOutcome.ERRORED
        except Exception as e:
            if self.token.cancelled:
                return StreamOutcome.CANCELLED
            logger.error("Unexpected error in stream: %s", e,
                extra=self._log_extra, exc_info=True)
            self.channel.publish(unexpected_error_event())
            return StreamOutcome.ERRORED

    async def _loop(self, system, tools, messages, dispatch) -> StreamOutcome:
        messages = list(messages)
        for _ in range(self.max_steps):
            response = await self._stream_turn(system, tools, messages)
            if response is None:
                return StreamOutcome.CANCELLED
            inp, out = usage_tokens(response)
            self.input_tokens += inp
            self.output_tokens += out

            if response.stop_reason == "pause_turn":
                messages.append({
                    "role": "assistant", "content": serialize_content(response),
                })
                continue

            blocks = tool_use_blocks(response)
            if not blocks:
                return self._finish()

            messages.append({
                "role": "assistant", "content": serialize_content(response),
            })
            results = await self._execute_tool_blocks(dispatch, blocks)
            if results is None:
                return StreamOutcome.CANCELLED
            messages.append({"role": "user", "content": results})

        raise AgentStepLimitError(self.max_steps, self.ctx)

    async def _stream_turn(self, system, tools, messages) -> Any | None:
        """One model call. Returns the final message, or None if cancelled."""
        self._pending.clear()
        async with self.client.stream_message(
            model=self.model,
            max_tokens=self.max_tokens,
            system=with_system_cache(system),
            tools=with_tools_cache(tools),
            messages=messages,
            context=self.ctx,
        ) as stream:
            async for chunk in stream:
                if self.token.cancelled:
                    break
                self._process_chunk(chunk)
            if self.token.cancelled:
                logger.info("Stream cancelled mid-turn", extra=self._log_extra)
                return None
            return await stream.get_final_message()

    def _process_chunk(self, chunk: Any) -> None:
        etype = getattr(chunk, "type", None)
        if etype == "content_block_delta":
            delta = chunk.delta
            if getattr(delta, "type", None) == "text_delta" and delta.text:
                self._text.append(delta.text)
                self.channel.publish(text_delta_event(delta.text))
        elif etype == "content_block_start":
            self._block_start(getattr(chunk, "index", None), chunk.content_block)
        elif etype == "content_block_stop":
            self._block_stop(getattr(chunk, "index", None), chunk)

    def _block_start(self, index: int | None, block: Any) -> None:
        btype = getattr(block, "type", None)
        if btype in _TOOL_BLOCKS:
            self._pending[index] = (block.name, block.id)
        elif btype == "web_search_tool_result":
            tool_call_id = block.tool_use_id
            self._start_tool("web_search", tool_call_id, {})
            self.channel.publish(tool_call_done_event(
                "web_search", tool_call_id,
                {"status": "ok",
                 "results": summarize_web_results(getattr(block, "content", None))},
            ))

    def _block_stop(self, index: int | None, chunk: Any) -> None:
        pending = self._pending.pop(index, None)
        if pending is None:
            return
        name, tool_call_id = pending
        snapshot = getattr(chunk, "content_block", None)
        args = getattr(snapshot, "input", None)
        self._start_tool(name, tool_call_id, args if isinstance(args, dict) else {})

    def _start_tool(self, name: str, tool_call_id: str, args: dict) -> None:
        if tool_call_id in self._started:
            return
        self._started.add(tool_call_id)
        self.channel.publish(tool_call_start_event(name, tool_call_id, args))

    async def _execute_tool_blocks(
        self, dispatch: ToolDispatch, blocks: list[Any],
    ) -> list[dict] | None:
        """Run tool_use blocks in order. Returns tool_result blocks, None if cancelled."""
        results = []
        for block in blocks:
            if self.token.cancelled:
                return None
            self._start_tool(block.name, block.id, dict(block.input or {}))
            result = await self._execute_tool_safe(dispatch, block.name, block.input)
            if self.token.cancelled:
                return None
            self.channel.publish(tool_call_done_event(block.name, block.id, result))
            results.append(tool_result_block(block.id, result))
        return results

    async def _execute_tool_safe(
        self, dispatch: ToolDispatch, tool_name: str, tool_input: dict,
    ) -> dict:
        """Execute tool with error boundary, never raises."""
        try:
            return await dispatch.execute(tool_name, tool_input or {})
        except DocPanelError as e:
            logger.warning("Tool error: %s", e.message,
                extra={**self._log_extra, "tool_name": tool_name,
                       "error_code": e.code})
            return e.to_tool_result()
        except Exception as e:
            logger.error("Unexpected error in tool '%s': %s", tool_name, e,
                extra={**self._log_extra, "tool_name": tool_name},
                exc_info=True)
            return {
                "status": "error", "error_code": "TOOL_EXECUTION_ERROR",
                "message": f"Internal error executing {tool_name}",
            }

    def _finish(self) -> StreamOutcome:
        if self.token.cancelled:
            return StreamOutcome.CANCELLED
        self.channel.publish(text_done_event("".join(self._text)))
        self.channel.publish(finish_event(self.input_tokens, self.output_tokens))
        logger.info("Stream completed", extra={
            **self._log_extra,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
        })
        return StreamOutcome.COMPLETED
