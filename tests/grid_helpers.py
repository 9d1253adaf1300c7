from __future__ import annotations

from typing import Any, List, Sequence

from gridsync.cells import EMPTY_CELL, NumberFormatType, RawCell


def cell(value: Any, kind: NumberFormatType = NumberFormatType.NONE, formatted: str | None = None) -> RawCell:
    if value is None:
        return EMPTY_CELL
    if formatted is None:
        formatted = str(value).upper() if isinstance(value, bool) else str(value)
    return RawCell(effective_value=value, formatted_value=formatted, number_format_type=kind)


def grid(rows: Sequence[Sequence[Any]]) -> List[List[RawCell]]:
    """Build a raw grid from plain values; ``None`` marks an empty cell."""

    return [[value if isinstance(value, RawCell) else cell(value) for value in row] for row in rows]
