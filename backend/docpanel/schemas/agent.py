"""Agent Panel Schemas — Pydantic models for stream requests and context operations.

Invariants:
    - StreamRequest.prompt: 1-100000 chars, stripped, non-empty
    - ContextFragment fields are all optional; document-type rules apply later
      in the context resolver, not here
    - PdfPage.page_number is 1-based

Design Decisions:
    - Literal role type over str enum: Pydantic handles validation natively
    - Fragment kept flat (one model for all document types) to match the
      caller's tab payloads
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from docpanel.core.agent_context import PageContent
from docpanel.core.domain_types import DocumentType


class ChatMessage(BaseModel):
    """Prior conversation turn supplied by the caller."""
    role: Literal["user", "assistant"]
    content: str


class ImageAttachment(BaseModel):
    """Base64 image sent with the current prompt."""
    data: str = Field(min_length=1)
    media_type: str = Field(pattern=r"^image/(png|jpeg|gif|webp)$")


class PdfPage(BaseModel):
    """Pre-extracted page (remote PDFs are extracted by the caller)."""
    page_number: int = Field(ge=1)
    content: str
    word_count: int = Field(ge=0)

    def to_page_content(self) -> PageContent:
        return PageContent(
            page_number=self.page_number,
            content=self.content,
            word_count=self.word_count,
        )


class ContextFragment(BaseModel):
    """Document-type-specific context supplied with a stream request."""
    # PDF
    pdf_path: str | None = None
    pdf_name: str | None = None
    current_page: int | None = Field(None, ge=1)
    selected_text: str | None = None
    pdf_pages: list[PdfPage] | None = None
    # Spreadsheet
    workbook_id: str | None = None
    sheet_id: str | None = None
    selected_range: str | None = None
    # Text document
    document_id: str | None = None
    document_title: str | None = None
    # File system
    file_id: str | None = None
    file_name: str | None = None


class StreamRequest(BaseModel):
    """Input to SessionStreamController.start()."""
    document_type: DocumentType
    prompt: str = Field(min_length=1, max_length=100_000)
    provider: str = "anthropic"
    model_id: str | None = None
    messages: list[ChatMessage] = Field(default_factory=list)
    images: list[ImageAttachment] = Field(default_factory=list)
    context: ContextFragment = Field(default_factory=ContextFragment)

    @field_validator("prompt")
    @classmethod
    def strip_prompt(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("prompt cannot be empty or whitespace")
        return v


class LoadContextRequest(BaseModel):
    source_locator: str = Field(min_length=1)


class ContextStatus(BaseModel):
    """Summary of a session's cached document context."""
    loaded: bool
    source: str | None = None
    page_count: int = 0
    total_words: int = 0
