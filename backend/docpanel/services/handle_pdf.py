"""PDF Handlers — search, page reads, summaries, sections, citations, viewer control.

Invariants:
    - Reads operate on context.pages only (resolved before the stream starts)
    - navigate_to_page / highlight_text are the only handlers touching the backend
    - A page number outside the document returns PAGE_NOT_FOUND, never raises
    - Excerpts handed to the model carry their [page N] citation

Design Decisions:
    - summarize_document caps returned content at 15000 chars so one tool
      result cannot crowd out the conversation
    - answer_with_citations dedupes by page and keeps the first 5 pages hit
"""

import logging

from docpanel.core.agent_context import AgentContext, count_words
from docpanel.core.collaborator_protocols import ToolBackend
from docpanel.core.search_pages import search_with_citations
from docpanel.core.tool_results import error_result

logger = logging.getLogger(__name__)

SUMMARY_CHAR_LIMIT = 15_000
ANSWER_PAGE_LIMIT = 5
ANSWER_PAGE_CHARS = 2_000
SECTION_SPAN = 3


def _citation(page_number: int) -> str:
    return f"[page {page_number}]"


class PdfHandlers:
    """Tools over the resolved PDF pages."""

    def __init__(self, context: AgentContext, backend: ToolBackend):
        self.context = context
        self.backend = backend

    @property
    def _pages(self):
        return self.context.pages

    def _missing_page(self, page_number: int) -> dict:
        return error_result(
            "PAGE_NOT_FOUND",
            f"Page {page_number} does not exist. The document has "
            f"{self.context.page_count} pages.",
        )

    async def search_pdf(self, input_data: dict) -> dict:
        query = input_data.get("query", "")
        max_results = input_data.get("max_results", 5)
        hits = search_with_citations(query, self._pages, max_results)
        logger.info("PDF search: %d hits", len(hits),
            extra={"session_id": self.context.session_id,
                   "tool_name": "search_pdf"})
        if not hits:
            return {
                "status": "ok",
                "found": False,
                "query": query,
                "results": [],
                "message": f'"{query}" was not found in the document.',
            }
        return {
            "status": "ok",
            "found": True,
            "query": query,
            "filename": self.context.display_name,
            "result_count": len(hits),
            "results": [
                {
                    "citation_id": i,
                    "page": hit.page_number,
                    "excerpt": hit.text,
                    "citation": _citation(hit.page_number),
                }
                for i, hit in enumerate(hits, start=1)
            ],
        }

    async def get_page_content(self, input_data: dict) -> dict:
        page_number = input_data.get("page_number", 0)
        page = self.context.find_page(page_number)
        if page is None:
            return self._missing_page(page_number)
        return {
            "status": "ok",
            "page_number": page.page_number,
            "word_count": page.word_count,
            "content": page.content,
            "citation": _citation(page.page_number),
        }

    async def get_page_range(self, input_data: dict) -> dict:
        last = self.context.page_count
        start = max(1, min(input_data.get("start_page", 1), last))
        end = max(start, min(input_data.get("end_page", start), last))
        selected = [
            p for p in self._pages if start <= p.page_number <= end
        ]
        return {
            "status": "ok",
            "range": {"start": start, "end": end},
            "page_count": len(selected),
            "total_words": sum(p.word_count for p in selected),
            "pages": [p.to_dict() for p in selected],
        }

    async def summarize_document(self, input_data: dict) -> dict:
        wanted = input_data.get("pages") or []
        style = input_data.get("style", "detailed")
        selected = (
            [p for p in self._pages if p.page_number in wanted]
            if wanted else list(self._pages)
        )
        if not selected:
            return error_result(
                "PAGE_NOT_FOUND", "None of the requested pages exist.",
            )
        content = "\n\n".join(
            f"{_citation(p.page_number)}\n{p.content}" for p in selected
        )
        return {
            "status": "ok",
            "pages_included": [p.page_number for p in selected],
            "word_count": count_words(content),
            "style": style,
            "content_to_summarize": content[:SUMMARY_CHAR_LIMIT],
            "truncated": len(content) > SUMMARY_CHAR_LIMIT,
            "instruction": (
                f"Write a {style} summary of this content. "
                "Cite pages as [page N]."
            ),
        }

    async def extract_section(self, input_data: dict) -> dict:
        title = input_data.get("section_title", "")
        include_sub = input_data.get("include_subsections", True)
        hits = search_with_citations(title, self._pages, 3)
        if not hits:
            return error_result(
                "SECTION_NOT_FOUND",
                f'Section "{title}" was not found in the document.',
            )
        start = hits[0].page_number
        last = start + SECTION_SPAN - 1 if include_sub else start
        section = [p for p in self._pages if start <= p.page_number <= last]
        numbers = ", ".join(str(p.page_number) for p in section)
        return {
            "status": "ok",
            "section_title": title,
            "start_page": start,
            "pages": [
                {"page_number": p.page_number, "content": p.content}
                for p in section
            ],
            "citation": f"[pages {numbers}]",
        }

    async def get_document_info(self, input_data: dict) -> dict:
        count = self.context.page_count
        total = self.context.total_words
        return {
            "status": "ok",
            "filename": self.context.display_name,
            "page_count": count,
            "total_words": total,
            "avg_words_per_page": round(total / count) if count else 0,
            "current_page": self.context.current_page or 1,
            "has_selected_text": bool(self.context.selected_text),
        }

    async def answer_with_citations(self, input_data: dict) -> dict:
        question = input_data.get("question", "")
        terms = [question, *(input_data.get("search_terms") or [])]
        excerpts: dict[int, list[str]] = {}
        for term in terms:
            for hit in search_with_citations(term, self._pages, 3):
                excerpts.setdefault(hit.page_number, []).append(hit.text)

        relevant = []
        for page_number in list(excerpts)[:ANSWER_PAGE_LIMIT]:
            page = self.context.find_page(page_number)
            relevant.append({
                "page_number": page_number,
                "citation": _citation(page_number),
                "excerpts": excerpts[page_number],
                "full_content": page.content[:ANSWER_PAGE_CHARS] if page else "",
            })
        return {
            "status": "ok",
            "question": question,
            "relevant_pages": relevant,
            "instruction": (
                "Answer using only the content above. Put [page N] after "
                "every fact taken from the document. If the answer is not "
                "there, say it was not found in the document."
            ),
        }

    async def navigate_to_page(self, input_data: dict) -> dict:
        page_number = input_data.get("page_number", 0)
        if not 1 <= page_number <= self.context.page_count:
            return self._missing_page(page_number)
        result = await self.backend.apply(
            "pdf.navigate",
            {"page_number": page_number, "artifact_id": self.context.artifact_id},
            self.context,
        )
        return {"status": "ok", **result}

    async def highlight_text(self, input_data: dict) -> dict:
        text = input_data.get("text", "")
        hits = search_with_citations(text, self._pages, 1)
        if not hits:
            return error_result(
                "TEXT_NOT_FOUND",
                f'"{text[:50]}" was not found in the document.',
            )
        result = await self.backend.apply(
            "pdf.highlight",
            {
                "text": text,
                "page_number": hits[0].page_number,
                "color": input_data.get("color", "yellow"),
                "artifact_id": self.context.artifact_id,
            },
            self.context,
        )
        return {"status": "ok", **result}
