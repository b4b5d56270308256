"""Context Resolver — builds the effective AgentContext for one stream.

Invariants:
    - PDF page precedence: supplied pages > session cache > local-source load
    - Remote locators (http/https) are never loaded from disk
    - Load failures are logged and leave pages empty; they never raise here
    - require_pages() is the single place a PDF with zero pages becomes fatal
    - Spreadsheet and document types pass supplied identifiers through untouched

Design Decisions:
    - Supplied pages win over the cache: they are freshly fetched by the caller
    - A cached entry is used even when the fragment names a different local
      path (the cache is only replaced by an explicit load or clear); the
      mismatch is logged as a warning
"""

import logging

from docpanel.core.agent_context import (
    AgentContext, is_remote_locator, to_local_path,
)
from docpanel.core.domain_types import DocumentType
from docpanel.core.errors import DocumentNotLoadedError, ErrorContext
from docpanel.schemas.agent import ContextFragment
from docpanel.services.context_cache import ContextCache

logger = logging.getLogger(__name__)

DEFAULT_PDF_NAME = "document.pdf"


class ContextResolver:
    """Produces AgentContext from a caller fragment plus cached/loaded content."""

    def __init__(self, cache: ContextCache):
        self._cache = cache

    async def resolve(
        self,
        session_id: str,
        document_type: DocumentType,
        fragment: ContextFragment,
        user_id: str | None = None,
    ) -> AgentContext:
        context = _base_context(session_id, document_type, fragment, user_id)
        if document_type == DocumentType.PDF:
            await self._resolve_pdf_pages(context, fragment)
        return context

    async def _resolve_pdf_pages(
        self, context: AgentContext, fragment: ContextFragment,
    ) -> None:
        session_id = context.session_id

        if fragment.pdf_pages:
            context.pages = [p.to_page_content() for p in fragment.pdf_pages]
            context.pdf_path = (
                fragment.pdf_name or fragment.pdf_path or DEFAULT_PDF_NAME
            )
            return

        cached = self._cache.get(session_id)
        if cached is not None:
            requested = fragment.pdf_path and to_local_path(fragment.pdf_path)
            if requested and requested != cached.source:
                logger.warning(
                    "Using cached context from %s; fragment names %s",
                    cached.source, fragment.pdf_path,
                    extra={"session_id": session_id},
                )
            context.pages = list(cached.pages)
            context.pdf_path = cached.source
            return

        locator = fragment.pdf_path
        if not locator or is_remote_locator(locator):
            return
        local_path = to_local_path(locator)
        try:
            entry = await self._cache.load(session_id, local_path)
        except Exception as e:
            logger.warning(
                "PDF load failed, continuing without pages: %s", e,
                extra={"session_id": session_id, "document_type": "pdf"},
            )
            return
        context.pages = list(entry.pages)
        context.pdf_path = entry.source


def require_pages(context: AgentContext) -> None:
    """Fail fast when a PDF stream has no grounding content."""
    if not context.pages:
        raise DocumentNotLoadedError(ErrorContext(
            session_id=context.session_id,
            document_type=context.document_type.value,
        ))


def _base_context(
    session_id: str,
    document_type: DocumentType,
    fragment: ContextFragment,
    user_id: str | None,
) -> AgentContext:
    return AgentContext(
        session_id=session_id,
        document_type=document_type,
        user_id=user_id,
        artifact_id=(
            fragment.workbook_id or fragment.document_id or fragment.file_id
        ),
        file_id=fragment.file_id,
        file_name=fragment.file_name,
        workbook_id=fragment.workbook_id,
        sheet_id=fragment.sheet_id,
        selected_range=fragment.selected_range,
        document_id=fragment.document_id,
        document_title=fragment.document_title,
        pdf_path=fragment.pdf_path or fragment.pdf_name,
        current_page=fragment.current_page,
        selected_text=fragment.selected_text,
    )
