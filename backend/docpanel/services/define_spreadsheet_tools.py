"""Spreadsheet Tool Schemas — Anthropic Tool Use format for workbook editing.

Invariants:
    - create_spreadsheet is the only tool that works without an active workbook
    - Cell references are A1 style; ranges are A1 or A1:B2
    - Number formats are a closed enum (currency, percentage, number, date)

Design Decisions:
    - artifact_id optional on editing tools: defaults to the workbook open in
      the caller's tab, overridable right after create_spreadsheet
"""

_CELL_VALUE = {"type": ["string", "number", "boolean", "null"]}

TOOLS_SPREADSHEET = [
    {
        "name": "create_spreadsheet",
        "description": (
            "Creates a new spreadsheet with a header row and optional data "
            "rows. Use it for tables, reports and budgets."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "headers": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 1,
                },
                "data": {
                    "type": "array",
                    "items": {"type": "array", "items": _CELL_VALUE},
                    "description": "Data rows below the header row",
                },
                "column_widths": {
                    "type": "array",
                    "items": {"type": "integer", "minimum": 1},
                    "description": "Column widths in pixels",
                },
            },
            "required": ["title", "headers"],
        },
    },
    {
        "name": "update_cells",
        "description": "Writes values or formulas into specific cells.",
        "input_schema": {
            "type": "object",
            "properties": {
                "updates": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "cell": {"type": "string", "description": "e.g. B4"},
                            "value": _CELL_VALUE,
                            "formula": {"type": "string"},
                        },
                        "required": ["cell"],
                    },
                    "minItems": 1,
                },
                "artifact_id": {"type": "string"},
            },
            "required": ["updates"],
        },
    },
    {
        "name": "format_cells",
        "description": "Applies text and cell formatting to a range.",
        "input_schema": {
            "type": "object",
            "properties": {
                "range": {"type": "string", "description": "e.g. A1:D1"},
                "format": {
                    "type": "object",
                    "properties": {
                        "bold": {"type": "boolean"},
                        "italic": {"type": "boolean"},
                        "background_color": {"type": "string"},
                        "text_color": {"type": "string"},
                        "horizontal_align": {
                            "type": "string",
                            "enum": ["left", "center", "right"],
                        },
                        "border": {"type": "boolean"},
                    },
                },
                "artifact_id": {"type": "string"},
            },
            "required": ["range", "format"],
        },
    },
    {
        "name": "apply_number_format",
        "description": "Sets the number format of a range.",
        "input_schema": {
            "type": "object",
            "properties": {
                "range": {"type": "string"},
                "format": {
                    "type": "string",
                    "enum": ["currency", "percentage", "number", "date"],
                },
                "artifact_id": {"type": "string"},
            },
            "required": ["range", "format"],
        },
    },
    {
        "name": "insert_formula",
        "description": (
            "Inserts a formula into a cell, e.g. SUM(B2:B10). The leading "
            "'=' is optional."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "cell": {"type": "string"},
                "formula": {"type": "string"},
                "artifact_id": {"type": "string"},
            },
            "required": ["cell", "formula"],
        },
    },
]
