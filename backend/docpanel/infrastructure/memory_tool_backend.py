"""In-Memory Tool Backend — applies document side effects to process-local state.

Invariants:
    - Every action name is listed in _ACTIONS; unknown actions raise ToolValidationError
    - Workbooks/documents referenced by id but never created are opened empty
      (the caller's already-open artifact)
    - Returns plain JSON-able dicts; never mutates the AgentContext

Design Decisions:
    - Stands in for the desktop renderer that applies edits in the real app;
      the HTTP app and tests both run against it
    - asyncio.Lock around mutations: tool calls from different sessions may interleave
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from docpanel.core.agent_context import AgentContext
from docpanel.core.cell_refs import column_letter, table_range
from docpanel.core.errors import ErrorContext, ToolValidationError

logger = logging.getLogger(__name__)


@dataclass
class Workbook:
    artifact_id: str
    title: str = "Untitled"
    cells: dict[str, object] = field(default_factory=dict)
    formats: list[dict] = field(default_factory=list)
    number_formats: dict[str, str] = field(default_factory=dict)
    column_widths: list[int] = field(default_factory=list)


@dataclass
class TextDocument:
    document_id: str
    title: str = "Untitled"
    blocks: list[dict] = field(default_factory=list)


class InMemoryToolBackend:
    """ToolBackend that keeps spreadsheets, documents and viewer state in memory."""

    def __init__(self) -> None:
        self.workbooks: dict[str, Workbook] = {}
        self.documents: dict[str, TextDocument] = {}
        self.viewer_pages: dict[str, int] = {}
        self.highlights: dict[str, list[dict]] = {}
        self.applied: list[tuple[str, dict]] = []
        self._lock = asyncio.Lock()
        self._actions = {
            "spreadsheet.create": self._create_spreadsheet,
            "spreadsheet.update_cells": self._update_cells,
            "spreadsheet.format_cells": self._format_cells,
            "spreadsheet.number_format": self._number_format,
            "spreadsheet.insert_formula": self._insert_formula,
            "document.create": self._create_document,
            "document.insert_heading": self._insert_heading,
            "document.insert_text": self._insert_text,
            "pdf.navigate": self._navigate,
            "pdf.highlight": self._highlight,
        }

    async def apply(
        self, action: str, payload: dict, context: AgentContext,
    ) -> dict:
        handler = self._actions.get(action)
        if handler is None:
            raise ToolValidationError(
                f"Unknown backend action '{action}'", "action",
                ErrorContext(session_id=context.session_id),
            )
        async with self._lock:
            result = handler(payload, context)
            self.applied.append((action, payload))
        logger.debug(
            "Applied backend action %s", action,
            extra={"session_id": context.session_id},
        )
        return result

    # -- Spreadsheet -----------------------------------------------------------

    def _workbook(self, artifact_id: str) -> Workbook:
        book = self.workbooks.get(artifact_id)
        if book is None:
            book = Workbook(artifact_id=artifact_id)
            self.workbooks[artifact_id] = book
        return book

    def _create_spreadsheet(self, payload: dict, context: AgentContext) -> dict:
        headers = payload.get("headers", [])
        data = payload.get("data") or []
        book = Workbook(
            artifact_id=str(uuid.uuid4()),
            title=payload.get("title", "Untitled"),
            column_widths=list(payload.get("column_widths") or []),
        )
        for col, header in enumerate(headers):
            book.cells[f"{column_letter(col)}1"] = header
        for row_index, row in enumerate(data, start=2):
            for col, value in enumerate(row):
                if value is not None:
                    book.cells[f"{column_letter(col)}{row_index}"] = value
        self.workbooks[book.artifact_id] = book
        return {
            "artifact_id": book.artifact_id,
            "title": book.title,
            "range": table_range(len(headers), len(data) + 1),
            "row_count": len(data) + 1,
            "column_count": len(headers),
        }

    def _update_cells(self, payload: dict, context: AgentContext) -> dict:
        book = self._workbook(payload["artifact_id"])
        for update in payload.get("updates", []):
            cell = update["cell"].upper()
            book.cells[cell] = update.get("formula") or update.get("value")
        return {
            "artifact_id": book.artifact_id,
            "cell_count": len(payload.get("updates", [])),
        }

    def _format_cells(self, payload: dict, context: AgentContext) -> dict:
        book = self._workbook(payload["artifact_id"])
        fmt = payload.get("format", {})
        book.formats.append({"range": payload["range"], "format": fmt})
        return {
            "artifact_id": book.artifact_id,
            "range": payload["range"],
            "applied_formats": sorted(k for k, v in fmt.items() if v),
        }

    def _number_format(self, payload: dict, context: AgentContext) -> dict:
        book = self._workbook(payload["artifact_id"])
        book.number_formats[payload["range"]] = payload["format"]
        return {
            "artifact_id": book.artifact_id,
            "range": payload["range"],
            "format": payload["format"],
        }

    def _insert_formula(self, payload: dict, context: AgentContext) -> dict:
        book = self._workbook(payload["artifact_id"])
        book.cells[payload["cell"].upper()] = payload["formula"]
        return {
            "artifact_id": book.artifact_id,
            "cell": payload["cell"],
            "formula": payload["formula"],
        }

    # -- Text document ---------------------------------------------------------

    def _document(self, document_id: str) -> TextDocument:
        doc = self.documents.get(document_id)
        if doc is None:
            doc = TextDocument(document_id=document_id)
            self.documents[document_id] = doc
        return doc

    def _create_document(self, payload: dict, context: AgentContext) -> dict:
        doc = TextDocument(
            document_id=str(uuid.uuid4()),
            title=payload.get("title", "Untitled"),
            blocks=list(payload.get("content", [])),
        )
        self.documents[doc.document_id] = doc
        return {
            "document_id": doc.document_id,
            "title": doc.title,
            "block_count": len(doc.blocks),
        }

    def _insert_heading(self, payload: dict, context: AgentContext) -> dict:
        doc = self._document(payload["document_id"])
        doc.blocks.append({
            "type": "heading", "level": payload["level"], "text": payload["text"],
        })
        return {"document_id": doc.document_id, "block_count": len(doc.blocks)}

    def _insert_text(self, payload: dict, context: AgentContext) -> dict:
        doc = self._document(payload["document_id"])
        block = {
            "type": "paragraph",
            "text": payload["text"],
            "formatting": payload.get("formatting") or {},
        }
        if payload.get("position") == "start":
            doc.blocks.insert(0, block)
        else:
            doc.blocks.append(block)
        return {
            "document_id": doc.document_id,
            "char_count": len(payload["text"]),
            "block_count": len(doc.blocks),
        }

    # -- PDF viewer ------------------------------------------------------------

    def _navigate(self, payload: dict, context: AgentContext) -> dict:
        self.viewer_pages[context.session_id] = payload["page_number"]
        return {"page_number": payload["page_number"]}

    def _highlight(self, payload: dict, context: AgentContext) -> dict:
        marks = self.highlights.setdefault(context.session_id, [])
        marks.append(dict(payload))
        return {
            "page_number": payload["page_number"],
            "color": payload["color"],
            "highlight_count": len(marks),
        }
