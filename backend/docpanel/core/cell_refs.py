"""A1-style cell reference helpers for spreadsheet tools."""

import re

_CELL = re.compile(r"^[A-Z]{1,3}[1-9][0-9]{0,6}$")
_RANGE = re.compile(r"^[A-Z]{1,3}[1-9][0-9]{0,6}(:[A-Z]{1,3}[1-9][0-9]{0,6})?$")


def is_cell_ref(ref: str) -> bool:
    return bool(_CELL.match(ref.strip().upper()))


def is_range_ref(ref: str) -> bool:
    return bool(_RANGE.match(ref.strip().upper()))


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    if index < 0:
        raise ValueError("column index must be >= 0")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def table_range(column_count: int, row_count: int) -> str:
    """Range covering a table anchored at A1."""
    last_col = column_letter(max(column_count, 1) - 1)
    return f"A1:{last_col}{max(row_count, 1)}"
