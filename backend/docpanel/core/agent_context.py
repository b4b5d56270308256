"""Agent Context — per-call value objects passed into tool construction and prompts.

Invariants:
    - AgentContext is built fresh per stream; only the PDF page fields
      (pdf_path, pages) are filled in during context resolution
    - PageContent.page_number is 1-based
    - Remote locators (http/https) are never read from local disk

Design Decisions:
    - dataclasses over pydantic: internal values, validated at the schema boundary
"""

from dataclasses import dataclass, field

from docpanel.core.domain_types import DocumentType


_REMOTE_PREFIXES = ("http://", "https://")
_FILE_SCHEME = "file://"


@dataclass(frozen=True)
class PageContent:
    """One extracted page of document text."""
    page_number: int
    content: str
    word_count: int

    def to_dict(self) -> dict:
        return {
            "page_number": self.page_number,
            "content": self.content,
            "word_count": self.word_count,
        }


@dataclass
class AgentContext:
    """Resolved document facts for one stream."""
    session_id: str
    document_type: DocumentType
    user_id: str | None = None
    artifact_id: str | None = None
    file_id: str | None = None
    file_name: str | None = None
    # Spreadsheet
    workbook_id: str | None = None
    sheet_id: str | None = None
    selected_range: str | None = None
    # Text document
    document_id: str | None = None
    document_title: str | None = None
    # PDF
    pdf_path: str | None = None
    current_page: int | None = None
    selected_text: str | None = None
    pages: list[PageContent] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def total_words(self) -> int:
        return sum(p.word_count for p in self.pages)

    @property
    def display_name(self) -> str:
        """Basename of the PDF locator, used in prompts and citations."""
        if not self.pdf_path:
            return "PDF"
        return self.pdf_path.rstrip("/").split("/")[-1] or "PDF"

    def find_page(self, page_number: int) -> PageContent | None:
        for page in self.pages:
            if page.page_number == page_number:
                return page
        return None


def count_words(text: str) -> int:
    return len(text.split())


def is_remote_locator(locator: str) -> bool:
    return locator.lower().startswith(_REMOTE_PREFIXES)


def to_local_path(locator: str) -> str:
    """Strip a file:// scheme; plain paths pass through unchanged."""
    if locator.startswith(_FILE_SCHEME):
        return locator[len(_FILE_SCHEME):]
    return locator
