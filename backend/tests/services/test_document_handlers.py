"""Document Handlers — creation, headings, text insertion, research planning."""

from docpanel.core.agent_context import AgentContext
from docpanel.core.domain_types import DocumentType
from docpanel.services.handle_document import DocumentHandlers


def _doc(backend, document_id=None):
    context = AgentContext(
        session_id="s1",
        document_type=DocumentType.DOCUMENT,
        document_id=document_id,
        artifact_id=document_id,
    )
    return DocumentHandlers(context, backend)


async def test_create_document(backend):
    result = await _doc(backend).create_document({
        "title": "Field Report",
        "content": [
            {"type": "heading", "text": "Summary", "level": 1},
            {"type": "paragraph", "text": "All sites visited."},
        ],
    })

    assert result["status"] == "ok"
    assert result["block_count"] == 2
    assert backend.documents[result["document_id"]].title == "Field Report"


async def test_create_document_rejects_unknown_block(backend):
    result = await _doc(backend).create_document({
        "title": "x", "content": [{"type": "video", "text": "clip"}],
    })

    assert result["error_code"] == "INVALID_BLOCK"
    assert backend.documents == {}


async def test_insert_heading_into_open_document(backend):
    result = await _doc(backend, "doc-1").insert_heading({"text": "Scope", "level": 2})

    assert result == {"status": "ok", "document_id": "doc-1", "block_count": 1}
    assert backend.documents["doc-1"].blocks[0] == {
        "type": "heading", "level": 2, "text": "Scope",
    }


async def test_insert_heading_invalid_level(backend):
    result = await _doc(backend, "doc-1").insert_heading({"text": "x", "level": 5})

    assert result["error_code"] == "INVALID_LEVEL"
    assert backend.applied == []


async def test_insert_without_document(backend):
    handlers = _doc(backend)

    heading = await handlers.insert_heading({"text": "x"})
    text = await handlers.insert_text({"text": "x"})

    assert heading["error_code"] == "NO_ACTIVE_DOCUMENT"
    assert text["error_code"] == "NO_ACTIVE_DOCUMENT"


async def test_insert_text_positions(backend):
    handlers = _doc(backend, "doc-1")

    await handlers.insert_text({"text": "middle"})
    await handlers.insert_text({"text": "first", "position": "start"})
    result = await handlers.insert_text({
        "text": "last", "position": "end", "formatting": {"bold": True},
    })

    blocks = backend.documents["doc-1"].blocks
    assert [b["text"] for b in blocks] == ["first", "middle", "last"]
    assert blocks[-1]["formatting"] == {"bold": True}
    assert result["char_count"] == 4


async def test_explicit_document_id_wins(backend):
    await _doc(backend, "doc-1").insert_text({"text": "x", "document_id": "doc-2"})

    assert "doc-2" in backend.documents
    assert "doc-1" not in backend.documents


async def test_research_topic_builds_queries(backend):
    result = await _doc(backend).research_topic({
        "topic": "heat pumps", "focus": ["cost", "efficiency"], "max_sources": 3,
    })

    assert result["queries"] == ["heat pumps cost", "heat pumps efficiency"]
    assert result["max_sources"] == 3
    assert "web_search" in result["instruction"]
    assert backend.applied == []


async def test_research_topic_requires_topic(backend):
    result = await _doc(backend).research_topic({"topic": "  "})

    assert result["error_code"] == "INVALID_TOPIC"
