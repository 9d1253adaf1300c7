"""Detection of the data block inside a sheet grid."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, TypeVar

from gridsync.cells import EMPTY_CELL, RawCell

RawGrid = List[List[RawCell]]

T = TypeVar("T")


class Orientation(Enum):
    """Whether headings run along the first row or down the first column."""

    ROWS = "ROWS"
    COLUMNS = "COLUMNS"

    @property
    def major_dimension(self) -> str:
        return self.value


@dataclass(frozen=True)
class DataRegion:
    row_offset: int
    column_offset: int
    row_count: int
    column_count: int

    @property
    def end_row(self) -> int:
        return self.row_offset + self.row_count

    @property
    def end_column(self) -> int:
        return self.column_offset + self.column_count


def cell_at(grid: Sequence[Sequence[RawCell]], row: int, column: int) -> RawCell:
    """Return the cell at ``(row, column)``; positions past a ragged edge are empty."""

    if row < 0 or row >= len(grid):
        return EMPTY_CELL
    cells = grid[row]
    if column < 0 or column >= len(cells):
        return EMPTY_CELL
    return cells[column]


def _row_is_empty(grid: Sequence[Sequence[RawCell]], row: int, start: int, end: int) -> bool:
    return all(cell_at(grid, row, column).is_empty for column in range(start, end))


def _column_is_empty(grid: Sequence[Sequence[RawCell]], column: int, start: int, end: int) -> bool:
    return all(cell_at(grid, row, column).is_empty for row in range(start, end))


def _last_filled_column(cells: Sequence[RawCell]) -> int:
    for index in range(len(cells) - 1, -1, -1):
        if not cells[index].is_empty:
            return index
    return -1


def _last_filled_row(grid: Sequence[Sequence[RawCell]], start: int, first_column: int, end_column: int) -> int:
    for row in range(len(grid) - 1, start - 1, -1):
        if not _row_is_empty(grid, row, first_column, end_column):
            return row
    return start


def detect_region(grid: Sequence[Sequence[RawCell]], orientation: Orientation) -> Optional[DataRegion]:
    """Return the bounding rectangle of the first data block, or ``None``.

    The scan anchors on the first non-empty cell (top to bottom, then left to
    right).  With ``ROWS`` the heading row defines the width and the block
    ends at the first fully empty row.  With ``COLUMNS`` the block ends at
    the first fully empty column.  Trailing empty rows and columns never
    change the result.
    """

    start_row = -1
    start_column = -1
    for row_index, cells in enumerate(grid):
        for column_index, cell in enumerate(cells):
            if not cell.is_empty:
                start_row, start_column = row_index, column_index
                break
        if start_row >= 0:
            break
    if start_row < 0:
        return None

    if orientation is Orientation.ROWS:
        end_column = _last_filled_column(grid[start_row]) + 1
        end_row = len(grid)
        for row_index in range(start_row + 1, len(grid)):
            if _row_is_empty(grid, row_index, start_column, end_column):
                end_row = row_index
                break
        else:
            end_row = _last_filled_row(grid, start_row, start_column, end_column) + 1
    else:
        width = max(len(cells) for cells in grid)
        end_column = width
        for column_index in range(start_column + 1, width):
            if _column_is_empty(grid, column_index, start_row, len(grid)):
                end_column = column_index
                break
        else:
            while end_column > start_column + 1 and _column_is_empty(grid, end_column - 1, start_row, len(grid)):
                end_column -= 1
        end_row = _last_filled_row(grid, start_row, start_column, end_column) + 1

    return DataRegion(
        row_offset=start_row,
        column_offset=start_column,
        row_count=end_row - start_row,
        column_count=end_column - start_column,
    )


def extract_region(grid: Sequence[Sequence[RawCell]], region: DataRegion) -> RawGrid:
    """Return the rectangular sub-grid covered by ``region``, padding ragged rows."""

    return [
        [cell_at(grid, row, column) for column in range(region.column_offset, region.end_column)]
        for row in range(region.row_offset, region.end_row)
    ]


def transpose(matrix: Sequence[Sequence[T]], fill: Optional[T] = None) -> List[List[Optional[T]]]:
    """Swap rows and columns, padding ragged rows with ``fill``."""

    if not matrix:
        return []
    width = max(len(row) for row in matrix)
    return [
        [row[column] if column < len(row) else fill for row in matrix]
        for column in range(width)
    ]


__all__ = [
    "DataRegion",
    "Orientation",
    "RawGrid",
    "cell_at",
    "detect_region",
    "extract_region",
    "transpose",
]
