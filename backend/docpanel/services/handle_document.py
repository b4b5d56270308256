"""Document Handlers — create_document, insert_heading, insert_text, research_topic."""

import logging

from docpanel.core.agent_context import AgentContext
from docpanel.core.collaborator_protocols import ToolBackend
from docpanel.core.tool_results import error_result

logger = logging.getLogger(__name__)

_BLOCK_TYPES = frozenset({"heading", "paragraph", "list", "table"})


class DocumentHandlers:
    """Rich-text document tools backed by the ToolBackend."""

    def __init__(self, context: AgentContext, backend: ToolBackend):
        self.context = context
        self.backend = backend

    def _target(self, input_data: dict) -> str | None:
        return input_data.get("document_id") or self.context.artifact_id

    async def create_document(self, input_data: dict) -> dict:
        blocks = input_data.get("content") or []
        unknown = [b.get("type") for b in blocks if b.get("type") not in _BLOCK_TYPES]
        if unknown:
            return error_result(
                "INVALID_BLOCK", f"Unsupported block type: {unknown[0]!r}",
            )
        result = await self.backend.apply("document.create", {
            "title": input_data.get("title", "Untitled"),
            "content": blocks,
        }, self.context)
        return {"status": "ok", **result}

    async def insert_heading(self, input_data: dict) -> dict:
        target = self._target(input_data)
        if not target:
            return error_result(
                "NO_ACTIVE_DOCUMENT",
                "No document is open. Create one with create_document first.",
            )
        level = input_data.get("level", 2)
        if level not in (1, 2, 3):
            return error_result("INVALID_LEVEL", "Heading level must be 1, 2 or 3.")
        result = await self.backend.apply("document.insert_heading", {
            "document_id": target,
            "text": input_data.get("text", ""),
            "level": level,
        }, self.context)
        return {"status": "ok", **result}

    async def insert_text(self, input_data: dict) -> dict:
        target = self._target(input_data)
        if not target:
            return error_result(
                "NO_ACTIVE_DOCUMENT",
                "No document is open. Create one with create_document first.",
            )
        result = await self.backend.apply("document.insert_text", {
            "document_id": target,
            "text": input_data.get("text", ""),
            "position": input_data.get("position", "end"),
            "formatting": input_data.get("formatting"),
        }, self.context)
        return {"status": "ok", **result}

    async def research_topic(self, input_data: dict) -> dict:
        """Turn a topic into concrete web_search queries."""
        topic = input_data.get("topic", "").strip()
        if not topic:
            return error_result("INVALID_TOPIC", "Topic cannot be empty.")
        focus = input_data.get("focus") or []
        queries = [f"{topic} {f}" for f in focus] if focus else [topic]
        logger.info("Research planned: %d queries", len(queries),
            extra={"session_id": self.context.session_id,
                   "tool_name": "research_topic"})
        return {
            "status": "ok",
            "topic": topic,
            "queries": queries,
            "max_sources": input_data.get("max_sources", 5),
            "instruction": (
                "Run web_search for each query, prefer recent and "
                "authoritative sources, and cite them in the document."
            ),
        }
