"""Document Tool Schemas — Anthropic Tool Use format for rich-text report writing.

Invariants:
    - create_document takes structured blocks, never raw markup
    - Heading levels are 1-3 (title, section, subsection)
    - research_topic plans queries; the searching itself is done by web_search

Design Decisions:
    - web_search is the Anthropic server-side tool: results arrive inside the
      model stream, no handler runs for it
"""

from typing import Any

WEB_SEARCH_TOOL: dict[str, Any] = {
    "type": "web_search_20250305",
    "name": "web_search",
    "max_uses": 5,
}

_BLOCK = {
    "type": "object",
    "properties": {
        "type": {
            "type": "string",
            "enum": ["heading", "paragraph", "list", "table"],
        },
        "level": {"type": "integer", "minimum": 1, "maximum": 3},
        "text": {"type": "string"},
        "items": {"type": "array", "items": {"type": "string"}},
        "rows": {
            "type": "array",
            "items": {"type": "array", "items": {"type": "string"}},
        },
    },
    "required": ["type"],
}

TOOLS_DOCUMENT = [
    {
        "name": "create_document",
        "description": (
            "Creates a new document from structured blocks. Use it for "
            "reports, proposals and essays."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "content": {"type": "array", "items": _BLOCK, "minItems": 1},
            },
            "required": ["title", "content"],
        },
    },
    {
        "name": "insert_heading",
        "description": "Appends a heading to the open document.",
        "input_schema": {
            "type": "object",
            "properties": {
                "text": {"type": "string"},
                "level": {"type": "integer", "minimum": 1, "maximum": 3},
                "document_id": {"type": "string"},
            },
            "required": ["text", "level"],
        },
    },
    {
        "name": "insert_text",
        "description": "Inserts a paragraph into the open document.",
        "input_schema": {
            "type": "object",
            "properties": {
                "text": {"type": "string"},
                "position": {
                    "type": "string",
                    "enum": ["start", "end", "cursor"],
                    "default": "end",
                },
                "formatting": {
                    "type": "object",
                    "properties": {
                        "bold": {"type": "boolean"},
                        "italic": {"type": "boolean"},
                        "underline": {"type": "boolean"},
                    },
                },
                "document_id": {"type": "string"},
            },
            "required": ["text"],
        },
    },
    {
        "name": "research_topic",
        "description": (
            "Plans research on a topic before writing. Returns the queries "
            "to run with web_search."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "topic": {"type": "string"},
                "focus": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Specific aspects to research",
                },
                "max_sources": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 10,
                    "default": 5,
                },
            },
            "required": ["topic"],
        },
    },
]
