"""Tool Dispatch & Registry — explicit routing and per-document-type toolsets.

Tests cover:
    - Known tools route to the correct handler
    - Unknown tools return UNKNOWN_TOOL error
    - Every custom tool schema has a handler; web_search has none
    - Prompts reflect the resolved context
"""

import pytest

from docpanel.core.agent_context import AgentContext
from docpanel.core.domain_types import DocumentType
from docpanel.core.errors import UnsupportedDocumentTypeError
from docpanel.services.tool_dispatch import (
    ToolDispatch, document_handlers, pdf_handlers, spreadsheet_handlers,
)
from docpanel.services.tools_registry import get_toolset

from tests.services.fakes import SAMPLE_PAGES


def _context(document_type, **kwargs):
    return AgentContext(session_id="s1", document_type=document_type, **kwargs)


# ==============================================================================
# ToolDispatch
# ==============================================================================


async def test_dispatch_returns_error_for_unknown_tool(backend):
    ctx = _context(DocumentType.SPREADSHEET)
    dispatch = ToolDispatch(ctx, spreadsheet_handlers(ctx, backend))

    result = await dispatch.execute("search_pdf", {"query": "x"})

    assert result["status"] == "error"
    assert result["error_code"] == "UNKNOWN_TOOL"
    assert "search_pdf" in result["message"]


async def test_dispatch_routes_to_handler(backend):
    ctx = _context(DocumentType.PDF, pages=list(SAMPLE_PAGES))
    dispatch = ToolDispatch(ctx, pdf_handlers(ctx, backend))

    result = await dispatch.execute("get_document_info", {})

    assert result["page_count"] == 3


async def test_dispatch_tolerates_missing_input(backend):
    ctx = _context(DocumentType.DOCUMENT)
    dispatch = ToolDispatch(ctx, document_handlers(ctx, backend))

    result = await dispatch.execute("research_topic", None)

    assert result["error_code"] == "INVALID_TOPIC"


def test_handler_maps_are_explicit(backend):
    ctx = _context(DocumentType.PDF)

    assert set(pdf_handlers(ctx, backend)) == {
        "search_pdf", "get_page_content", "get_page_range",
        "summarize_document", "extract_section", "get_document_info",
        "answer_with_citations", "navigate_to_page", "highlight_text",
    }
    assert set(spreadsheet_handlers(ctx, backend)) == {
        "create_spreadsheet", "update_cells", "format_cells",
        "apply_number_format", "insert_formula",
    }
    assert set(document_handlers(ctx, backend)) == {
        "create_document", "insert_heading", "insert_text", "research_topic",
    }


# ==============================================================================
# Tools registry
# ==============================================================================


@pytest.mark.parametrize("document_type", list(DocumentType))
def test_every_custom_schema_has_handler(document_type, backend):
    toolset = get_toolset(_context(document_type), document_type, backend)

    custom = {t["name"] for t in toolset.tools if "input_schema" in t}
    assert custom == set(toolset.dispatch.tool_names)
    for tool in toolset.tools:
        if "input_schema" in tool:
            assert tool["input_schema"]["type"] == "object"
            assert tool["description"]


def test_web_search_only_for_documents(backend):
    doc = get_toolset(_context(DocumentType.DOCUMENT), DocumentType.DOCUMENT, backend)
    pdf = get_toolset(_context(DocumentType.PDF), DocumentType.PDF, backend)

    assert doc.tool_names[0] == "web_search"
    assert "web_search" not in doc.dispatch.tool_names
    assert "web_search" not in pdf.tool_names


def test_toolset_tools_are_fresh_lists(backend):
    ctx = _context(DocumentType.SPREADSHEET)
    first = get_toolset(ctx, DocumentType.SPREADSHEET, backend)
    first.tools.append({"name": "injected"})

    second = get_toolset(ctx, DocumentType.SPREADSHEET, backend)
    assert "injected" not in second.tool_names


def test_unknown_document_type_raises(backend):
    with pytest.raises(UnsupportedDocumentTypeError):
        get_toolset(_context(DocumentType.PDF), "presentation", backend)


# ==============================================================================
# Prompts
# ==============================================================================


def test_pdf_prompt_reflects_document(backend):
    ctx = _context(
        DocumentType.PDF, pdf_path="/docs/atlas.pdf", pages=list(SAMPLE_PAGES),
        current_page=2, selected_text="supplier delays",
    )

    prompt = get_toolset(ctx, DocumentType.PDF, backend).system_prompt

    assert "Name: atlas.pdf" in prompt
    assert "Pages: 3" in prompt
    assert "viewing page 2" in prompt
    assert "Selected text: supplier delays" in prompt
    assert "[page N]" in prompt


def test_spreadsheet_prompt_open_vs_empty(backend):
    open_ctx = _context(
        DocumentType.SPREADSHEET, artifact_id="wb-1", sheet_id="Sheet1",
        selected_range="B2:C4",
    )
    empty_ctx = _context(DocumentType.SPREADSHEET)

    open_prompt = get_toolset(open_ctx, DocumentType.SPREADSHEET, backend).system_prompt
    empty_prompt = get_toolset(empty_ctx, DocumentType.SPREADSHEET, backend).system_prompt

    assert "Active workbook: wb-1 (sheet Sheet1)" in open_prompt
    assert "Selected range: B2:C4" in open_prompt
    assert "No workbook is open" in empty_prompt


def test_document_prompt_names_open_document(backend):
    ctx = _context(
        DocumentType.DOCUMENT, artifact_id="doc-1", document_title="Plan",
    )

    prompt = get_toolset(ctx, DocumentType.DOCUMENT, backend).system_prompt

    assert "Open document: Plan (doc-1)" in prompt
    assert "research_topic" in prompt
