"""PDF Tool Schemas — Anthropic Tool Use format for document-grounded reading tools.

Invariants:
    - All tools except navigate_to_page and highlight_text are pure reads of
      the resolved pages; no tool reloads the document
    - Page numbers are 1-based in every schema
    - Every result that quotes document text carries a [page N] citation

Design Decisions:
    - max_results bounded 1-10 in schema: Anthropic validates before the handler
    - summarize_document returns content plus instruction, the model writes the summary
"""

TOOLS_PDF = [
    {
        "name": "search_pdf",
        "description": (
            "Searches the PDF for text and returns excerpts with page numbers. "
            "Use this to find information before answering questions."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Text or topic to search for",
                },
                "max_results": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 10,
                    "default": 5,
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_page_content",
        "description": "Returns the full text of one page of the PDF.",
        "input_schema": {
            "type": "object",
            "properties": {
                "page_number": {"type": "integer", "minimum": 1},
            },
            "required": ["page_number"],
        },
    },
    {
        "name": "get_page_range",
        "description": (
            "Returns the text of a range of pages. Out-of-range bounds are "
            "clamped to the document."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "start_page": {"type": "integer", "minimum": 1},
                "end_page": {"type": "integer", "minimum": 1},
            },
            "required": ["start_page", "end_page"],
        },
    },
    {
        "name": "summarize_document",
        "description": (
            "Collects the content of the whole document, or of specific "
            "pages, so it can be summarized with page citations."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "pages": {
                    "type": "array",
                    "items": {"type": "integer", "minimum": 1},
                    "description": "Pages to include (empty = whole document)",
                },
                "style": {
                    "type": "string",
                    "enum": ["brief", "detailed", "bullets"],
                    "default": "detailed",
                },
            },
            "required": [],
        },
    },
    {
        "name": "extract_section",
        "description": (
            "Extracts a section of the document located by its heading or topic."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "section_title": {"type": "string"},
                "include_subsections": {"type": "boolean", "default": True},
            },
            "required": ["section_title"],
        },
    },
    {
        "name": "navigate_to_page",
        "description": "Shows a specific page in the PDF viewer.",
        "input_schema": {
            "type": "object",
            "properties": {
                "page_number": {"type": "integer", "minimum": 1},
            },
            "required": ["page_number"],
        },
    },
    {
        "name": "highlight_text",
        "description": "Highlights a passage of the PDF in the viewer.",
        "input_schema": {
            "type": "object",
            "properties": {
                "text": {"type": "string"},
                "color": {
                    "type": "string",
                    "enum": ["yellow", "green", "blue", "pink", "orange"],
                    "default": "yellow",
                },
            },
            "required": ["text"],
        },
    },
    {
        "name": "get_document_info",
        "description": (
            "Returns general facts about the loaded PDF: name, page count, "
            "word count, current page."
        ),
        "input_schema": {
            "type": "object",
            "properties": {},
            "required": [],
        },
    },
    {
        "name": "answer_with_citations",
        "description": (
            "Gathers the passages relevant to a question so the answer can "
            "cite pages. Use this to answer questions about the PDF."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "question": {"type": "string"},
                "search_terms": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Additional search terms",
                },
            },
            "required": ["question"],
        },
    },
]
