"""Spreadsheet Handlers — table creation, cell edits, formatting, formulas.

Invariants:
    - Target workbook: artifact_id argument > context workbook > NO_ACTIVE_WORKBOOK
    - Invalid references never reach the backend
    - Formulas always stored with a leading "="
"""

import pytest

from docpanel.core.agent_context import AgentContext
from docpanel.core.domain_types import DocumentType
from docpanel.services.handle_spreadsheet import SpreadsheetHandlers


def _sheet(backend, workbook_id=None):
    context = AgentContext(
        session_id="s1",
        document_type=DocumentType.SPREADSHEET,
        workbook_id=workbook_id,
        artifact_id=workbook_id,
    )
    return SpreadsheetHandlers(context, backend)


@pytest.fixture
def sheet(backend):
    return _sheet(backend, "wb-open")


# ==============================================================================
# create_spreadsheet
# ==============================================================================


async def test_create_spreadsheet_writes_table(backend):
    result = await _sheet(backend).create_spreadsheet({
        "title": "Q3 Budget",
        "headers": ["Item", "Cost"],
        "data": [["Rent", 1200], ["Travel", 300]],
    })

    assert result["status"] == "ok"
    assert result["range"] == "A1:B3"
    book = backend.workbooks[result["artifact_id"]]
    assert book.title == "Q3 Budget"
    assert book.cells["A1"] == "Item"
    assert book.cells["B3"] == 300


async def test_create_spreadsheet_needs_headers(backend):
    result = await _sheet(backend).create_spreadsheet({"title": "x", "headers": []})

    assert result["error_code"] == "INVALID_TABLE"
    assert backend.workbooks == {}


async def test_create_spreadsheet_rejects_wide_rows(backend):
    result = await _sheet(backend).create_spreadsheet({
        "title": "x", "headers": ["A"], "data": [["ok"], ["too", "wide"]],
    })

    assert result["error_code"] == "INVALID_TABLE"
    assert "Row 2" in result["message"]


# ==============================================================================
# Edits on an open workbook
# ==============================================================================


async def test_update_cells_uses_context_workbook(sheet, backend):
    result = await sheet.update_cells({"updates": [
        {"cell": "a1", "value": "Total"},
        {"cell": "B1", "value": None, "formula": "=SUM(B2:B9)"},
    ]})

    assert result == {"status": "ok", "artifact_id": "wb-open", "cell_count": 2}
    cells = backend.workbooks["wb-open"].cells
    assert cells["A1"] == "Total"
    assert cells["B1"] == "=SUM(B2:B9)"


async def test_explicit_artifact_id_wins(sheet, backend):
    await sheet.update_cells({
        "artifact_id": "wb-other", "updates": [{"cell": "C2", "value": 5}],
    })

    assert backend.workbooks["wb-other"].cells["C2"] == 5
    assert "wb-open" not in backend.workbooks


async def test_no_workbook_error(backend):
    handlers = _sheet(backend)

    for call, args in [
        (handlers.update_cells, {"updates": []}),
        (handlers.format_cells, {"range": "A1"}),
        (handlers.apply_number_format, {"range": "A1", "format": "currency"}),
        (handlers.insert_formula, {"cell": "A1", "formula": "=1"}),
    ]:
        result = await call(args)
        assert result["error_code"] == "NO_ACTIVE_WORKBOOK"
    assert backend.applied == []


async def test_invalid_cell_rejected(sheet, backend):
    result = await sheet.update_cells({"updates": [{"cell": "A0", "value": 1}]})

    assert result["error_code"] == "INVALID_CELL"
    assert "A0" in result["message"]
    assert backend.applied == []


async def test_format_cells(sheet, backend):
    result = await sheet.format_cells({
        "range": "a1:b1", "format": {"bold": True, "italic": False},
    })

    assert result["range"] == "A1:B1"
    assert result["applied_formats"] == ["bold"]


async def test_format_cells_invalid_range(sheet):
    result = await sheet.format_cells({"range": "A1-B2", "format": {"bold": True}})

    assert result["error_code"] == "INVALID_RANGE"


async def test_apply_number_format(sheet, backend):
    result = await sheet.apply_number_format({"range": "B2:B4", "format": "currency"})

    assert result["format"] == "currency"
    assert backend.workbooks["wb-open"].number_formats == {"B2:B4": "currency"}


async def test_insert_formula_prefixes_equals(sheet, backend):
    result = await sheet.insert_formula({"cell": "b5", "formula": "SUM(B2:B4)"})

    assert result["formula"] == "=SUM(B2:B4)"
    assert result["cell"] == "B5"
    assert backend.workbooks["wb-open"].cells["B5"] == "=SUM(B2:B4)"


async def test_insert_formula_invalid_cell(sheet):
    result = await sheet.insert_formula({"cell": "5B", "formula": "=1"})

    assert result["error_code"] == "INVALID_CELL"
