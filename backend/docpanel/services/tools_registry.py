"""Tools Registry — per-document-type tool sets, prompts and handlers.

Invariants:
    - get_toolset() is pure: it never calls the model, a tool or the backend
    - Every DocumentType has exactly one variant; a missing one raises
      UnsupportedDocumentTypeError
    - Every custom tool schema offered has a handler in the dispatch; server
      tools (web_search) have none

Design Decisions:
    - Dispatch table keyed by DocumentType instead of an if/elif chain: adding
      a document type is one _VARIANTS entry
    - Explicit imports from each define_*_tools.py, no auto-discovery
"""

from collections.abc import Callable
from dataclasses import dataclass

from docpanel.core.agent_context import AgentContext
from docpanel.core.collaborator_protocols import ToolBackend
from docpanel.core.domain_types import DocumentType
from docpanel.core.errors import ErrorContext, UnsupportedDocumentTypeError
from docpanel.services.define_document_tools import (
    TOOLS_DOCUMENT, WEB_SEARCH_TOOL,
)
from docpanel.services.define_pdf_tools import TOOLS_PDF
from docpanel.services.define_spreadsheet_tools import TOOLS_SPREADSHEET
from docpanel.services.system_prompt import (
    build_document_prompt, build_pdf_prompt, build_spreadsheet_prompt,
)
from docpanel.services.tool_dispatch import (
    Handler, ToolDispatch,
    document_handlers, pdf_handlers, spreadsheet_handlers,
)


@dataclass(frozen=True)
class _Variant:
    build_prompt: Callable[[AgentContext], str]
    tools: tuple[dict, ...]
    make_handlers: Callable[[AgentContext, ToolBackend], dict[str, Handler]]


@dataclass(frozen=True)
class Toolset:
    system_prompt: str
    tools: list[dict]
    dispatch: ToolDispatch

    @property
    def tool_names(self) -> list[str]:
        return [t["name"] for t in self.tools]


_VARIANTS: dict[DocumentType, _Variant] = {
    DocumentType.PDF: _Variant(
        build_pdf_prompt, tuple(TOOLS_PDF), pdf_handlers,
    ),
    DocumentType.SPREADSHEET: _Variant(
        build_spreadsheet_prompt, tuple(TOOLS_SPREADSHEET), spreadsheet_handlers,
    ),
    DocumentType.DOCUMENT: _Variant(
        build_document_prompt,
        (WEB_SEARCH_TOOL, *TOOLS_DOCUMENT),
        document_handlers,
    ),
}


def get_toolset(
    context: AgentContext, document_type: DocumentType, backend: ToolBackend,
) -> Toolset:
    variant = _VARIANTS.get(document_type)
    if variant is None:
        raise UnsupportedDocumentTypeError(
            str(document_type), ErrorContext(session_id=context.session_id),
        )
    handlers = variant.make_handlers(context, backend)
    return Toolset(
        system_prompt=variant.build_prompt(context),
        tools=list(variant.tools),
        dispatch=ToolDispatch(context, handlers),
    )
