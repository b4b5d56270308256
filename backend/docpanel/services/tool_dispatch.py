"""Tool Dispatch — explicit routing from tool_name to handler function.

Invariants:
    - Every tool->handler mapping is visible, no getattr magic or auto-discovery
    - Unknown tools return UNKNOWN_TOOL error (never raises)
    - A handler only sees the AgentContext of its own stream
    - Every call is logged with tool name and outcome

Design Decisions:
    - One handler map per document type: the model can only reach the tools
      it was offered
    - Handler classes split by document type, one method per tool
"""

import logging
from collections.abc import Awaitable, Callable

from docpanel.core.agent_context import AgentContext
from docpanel.core.collaborator_protocols import ToolBackend
from docpanel.core.tool_results import error_result, is_error_result
from docpanel.services.handle_document import DocumentHandlers
from docpanel.services.handle_pdf import PdfHandlers
from docpanel.services.handle_spreadsheet import SpreadsheetHandlers

logger = logging.getLogger(__name__)

Handler = Callable[[dict], Awaitable[dict]]


def pdf_handlers(context: AgentContext, backend: ToolBackend) -> dict[str, Handler]:
    pdf = PdfHandlers(context, backend)
    return {
        "search_pdf": pdf.search_pdf,
        "get_page_content": pdf.get_page_content,
        "get_page_range": pdf.get_page_range,
        "summarize_document": pdf.summarize_document,
        "extract_section": pdf.extract_section,
        "get_document_info": pdf.get_document_info,
        "answer_with_citations": pdf.answer_with_citations,
        "navigate_to_page": pdf.navigate_to_page,
        "highlight_text": pdf.highlight_text,
    }


def spreadsheet_handlers(
    context: AgentContext, backend: ToolBackend,
) -> dict[str, Handler]:
    sheet = SpreadsheetHandlers(context, backend)
    return {
        "create_spreadsheet": sheet.create_spreadsheet,
        "update_cells": sheet.update_cells,
        "format_cells": sheet.format_cells,
        "apply_number_format": sheet.apply_number_format,
        "insert_formula": sheet.insert_formula,
    }


def document_handlers(
    context: AgentContext, backend: ToolBackend,
) -> dict[str, Handler]:
    doc = DocumentHandlers(context, backend)
    return {
        "create_document": doc.create_document,
        "insert_heading": doc.insert_heading,
        "insert_text": doc.insert_text,
        "research_topic": doc.research_topic,
    }


class ToolDispatch:
    """Routes tool_name -> handler for one stream."""

    def __init__(self, context: AgentContext, handlers: dict[str, Handler]):
        self._context = context
        self._handlers = handlers

    @property
    def tool_names(self) -> frozenset[str]:
        return frozenset(self._handlers)

    async def execute(self, tool_name: str, input_data: dict) -> dict:
        handler = self._handlers.get(tool_name)
        if handler is None:
            result = error_result(
                "UNKNOWN_TOOL", f"Tool '{tool_name}' does not exist.",
            )
        else:
            result = await handler(input_data or {})
        self._log_tool_call(tool_name, result)
        return result

    def _log_tool_call(self, tool_name: str, result: dict) -> None:
        extra = {
            "session_id": self._context.session_id,
            "document_type": self._context.document_type.value,
            "tool_name": tool_name,
        }
        if is_error_result(result):
            extra["error_code"] = result.get("error_code")
            logger.warning("Tool returned error", extra=extra)
        else:
            logger.info("Tool executed", extra=extra)
