from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gridsync.region import DataRegion, Orientation, detect_region, extract_region, transpose
from grid_helpers import grid


def test_all_empty_grid_has_no_region() -> None:
    assert detect_region([], Orientation.ROWS) is None
    assert detect_region(grid([[None, None], [None]]), Orientation.ROWS) is None
    assert detect_region(grid([[None], []]), Orientation.COLUMNS) is None


def test_rows_region_records_offsets() -> None:
    raw = grid(
        [
            [],
            [None, None],
            [None, "name", "age"],
            [None, "Al", 30],
            [None, "Bo", 41],
        ]
    )

    region = detect_region(raw, Orientation.ROWS)

    assert region == DataRegion(row_offset=2, column_offset=1, row_count=3, column_count=2)


def test_rows_region_stops_at_first_empty_row() -> None:
    raw = grid(
        [
            ["name", "age"],
            ["Al", 30],
            [None, None],
            ["other", "table"],
        ]
    )

    region = detect_region(raw, Orientation.ROWS)

    assert region == DataRegion(0, 0, 2, 2)


def test_rows_region_keeps_sparse_rows_inside_block() -> None:
    raw = grid(
        [
            ["name", "age", "city"],
            ["Al", None, None],
            [None, None, "Oslo"],
        ]
    )

    assert detect_region(raw, Orientation.ROWS) == DataRegion(0, 0, 3, 3)


def test_heading_row_defines_width() -> None:
    raw = grid(
        [
            ["name", "age"],
            ["Al", 30, "stray"],
        ]
    )

    assert detect_region(raw, Orientation.ROWS) == DataRegion(0, 0, 2, 2)


def test_columns_region_stops_at_first_empty_column() -> None:
    raw = grid(
        [
            ["name", "Al", "Bo", None, "x"],
            ["age", 30, 41, None, "y"],
        ]
    )

    assert detect_region(raw, Orientation.COLUMNS) == DataRegion(0, 0, 2, 3)


@pytest.mark.parametrize("orientation", [Orientation.ROWS, Orientation.COLUMNS])
def test_trailing_empty_lines_do_not_change_region(orientation: Orientation) -> None:
    base = [
        [None, None, None],
        [None, "name", "age"],
        [None, "Al", 30],
    ]
    padded = [row + [None, None] for row in base] + [[None] * 5, [None] * 5]

    assert detect_region(grid(base), orientation) == detect_region(grid(padded), orientation)


def test_extract_region_pads_ragged_rows() -> None:
    raw = grid([["a", "b"], ["1"]])
    region = DataRegion(0, 0, 2, 2)

    block = extract_region(raw, region)

    assert [[cell.effective_value for cell in row] for row in block] == [["a", "b"], ["1", None]]


def test_transpose_pads_with_fill() -> None:
    assert transpose([[1, 2, 3], [4]], fill="") == [[1, 4], [2, ""], [3, ""]]
    assert transpose([]) == []
