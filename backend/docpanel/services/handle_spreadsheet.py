"""Spreadsheet Handlers — create, update, format, number-format, formula.

Invariants:
    - Every tool except create_spreadsheet needs a target workbook: the
      artifact_id argument, else the context's workbook; none -> NO_ACTIVE_WORKBOOK
    - Cell and range references are validated before the backend is called
    - insert_formula always sends a formula starting with "="

Design Decisions:
    - Validation returns error payloads rather than raising: the model reads
      the message and corrects its next call
"""

import logging

from docpanel.core.agent_context import AgentContext
from docpanel.core.cell_refs import is_cell_ref, is_range_ref
from docpanel.core.collaborator_protocols import ToolBackend
from docpanel.core.tool_results import error_result

logger = logging.getLogger(__name__)


def _no_workbook() -> dict:
    return error_result(
        "NO_ACTIVE_WORKBOOK",
        "No spreadsheet is open. Create one with create_spreadsheet first.",
    )


class SpreadsheetHandlers:
    """Workbook editing tools backed by the ToolBackend."""

    def __init__(self, context: AgentContext, backend: ToolBackend):
        self.context = context
        self.backend = backend

    def _target(self, input_data: dict) -> str | None:
        return input_data.get("artifact_id") or self.context.artifact_id

    async def _apply(self, action: str, payload: dict) -> dict:
        result = await self.backend.apply(action, payload, self.context)
        return {"status": "ok", **result}

    async def create_spreadsheet(self, input_data: dict) -> dict:
        headers = input_data.get("headers") or []
        if not headers:
            return error_result(
                "INVALID_TABLE", "A spreadsheet needs at least one header.",
            )
        data = input_data.get("data") or []
        wide = [i for i, row in enumerate(data) if len(row) > len(headers)]
        if wide:
            return error_result(
                "INVALID_TABLE",
                f"Row {wide[0] + 1} has more values than there are headers.",
            )
        logger.info("Creating spreadsheet",
            extra={"session_id": self.context.session_id,
                   "tool_name": "create_spreadsheet"})
        return await self._apply("spreadsheet.create", {
            "title": input_data.get("title", "Untitled"),
            "headers": headers,
            "data": data,
            "column_widths": input_data.get("column_widths"),
        })

    async def update_cells(self, input_data: dict) -> dict:
        target = self._target(input_data)
        if not target:
            return _no_workbook()
        updates = input_data.get("updates") or []
        bad = [u.get("cell", "") for u in updates if not is_cell_ref(u.get("cell", ""))]
        if bad:
            return error_result(
                "INVALID_CELL", f"Invalid cell reference: {bad[0]!r}",
            )
        return await self._apply("spreadsheet.update_cells", {
            "artifact_id": target, "updates": updates,
        })

    async def format_cells(self, input_data: dict) -> dict:
        target = self._target(input_data)
        if not target:
            return _no_workbook()
        cell_range = input_data.get("range", "")
        if not is_range_ref(cell_range):
            return error_result(
                "INVALID_RANGE", f"Invalid range: {cell_range!r}",
            )
        return await self._apply("spreadsheet.format_cells", {
            "artifact_id": target,
            "range": cell_range.upper(),
            "format": input_data.get("format") or {},
        })

    async def apply_number_format(self, input_data: dict) -> dict:
        target = self._target(input_data)
        if not target:
            return _no_workbook()
        cell_range = input_data.get("range", "")
        if not is_range_ref(cell_range):
            return error_result(
                "INVALID_RANGE", f"Invalid range: {cell_range!r}",
            )
        return await self._apply("spreadsheet.number_format", {
            "artifact_id": target,
            "range": cell_range.upper(),
            "format": input_data.get("format", "number"),
        })

    async def insert_formula(self, input_data: dict) -> dict:
        target = self._target(input_data)
        if not target:
            return _no_workbook()
        cell = input_data.get("cell", "")
        if not is_cell_ref(cell):
            return error_result("INVALID_CELL", f"Invalid cell reference: {cell!r}")
        formula = input_data.get("formula", "").strip()
        if not formula.startswith("="):
            formula = f"={formula}"
        return await self._apply("spreadsheet.insert_formula", {
            "artifact_id": target, "cell": cell.upper(), "formula": formula,
        })
