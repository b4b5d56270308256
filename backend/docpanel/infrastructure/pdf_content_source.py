"""PDF Content Source — page-by-page text extraction from local PDF files.

Invariants:
    - Pages keep their 1-based position in the file; pages with no text are skipped
    - word_count is a whitespace split of the stripped page text
    - Remote locators are rejected; file:// prefixes are stripped
    - Extraction runs in a worker thread (pypdf is synchronous)
"""

import asyncio
import logging
from pathlib import Path

from pypdf import PdfReader

from docpanel.core.agent_context import (
    PageContent, count_words, is_remote_locator, to_local_path,
)

logger = logging.getLogger(__name__)


class PdfFileContentSource:
    """ContentSource that reads text from PDFs on local disk."""

    def __init__(self, *, reader_cls: type | None = None) -> None:
        self._reader_cls = reader_cls or PdfReader

    async def load_pages(self, source_locator: str) -> list[PageContent]:
        if is_remote_locator(source_locator):
            raise ValueError(f"Remote locator not readable from disk: {source_locator}")
        path = Path(to_local_path(source_locator))
        return await asyncio.to_thread(self._extract, path)

    def _extract(self, path: Path) -> list[PageContent]:
        reader = self._reader_cls(str(path))
        pages: list[PageContent] = []
        for index, page in enumerate(reader.pages):
            text = (page.extract_text() or "").strip()
            if not text:
                logger.debug("PDF page %s has no extractable text", index + 1)
                continue
            pages.append(PageContent(
                page_number=index + 1,
                content=text,
                word_count=count_words(text),
            ))
        logger.info(
            "Extracted %d pages from %s", len(pages), path.name,
            extra={"page_count": len(pages)},
        )
        return pages
