"""Grid decoder: raw sheet cells to keyed records.

``decode_grid`` finds the data block, cuts it out of the fetched grid, turns
it so that the headings are always the first line, and decodes every cell.
A block with a single heading decodes to :class:`FlatValues` (a named list of
scalars); wider blocks decode to a list of dictionaries keyed by heading.

The returned :class:`DecodedGrid` also carries the :class:`SyncState` the
next write needs: offsets of the block, the author's heading text and the
number of data lines currently on the sheet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from gridsync.cells import RawCell, Value, decode_cell
from gridsync.headings import DecodeWarning, HeadingResult, normalize_headings
from gridsync.region import DataRegion, Orientation, detect_region, extract_region, transpose
from gridsync.settings import SyncOptions
from gridsync.state import SyncState, freeze_grid

logger = logging.getLogger(__name__)

Record = Dict[str, Value]


@dataclass
class FlatValues:
    """A single-heading block: the heading names the collection."""

    name: str
    values: List[Value] = field(default_factory=list)

    def as_dict(self) -> Dict[str, List[Value]]:
        return {self.name: list(self.values)}


RecordSet = List[Record]
DecodedData = Union[RecordSet, FlatValues]


@dataclass
class DecodedGrid:
    data: DecodedData
    headings: HeadingResult
    region: DataRegion
    state: SyncState

    @property
    def warnings(self) -> Tuple[DecodeWarning, ...]:
        return self.headings.warnings


def _heading_text(cell: RawCell) -> str:
    if cell.is_empty:
        return ""
    if cell.formatted_value:
        return cell.formatted_value
    return str(cell.effective_value)


def value_grid(grid: Sequence[Sequence[RawCell]], render_formatted: bool) -> List[List[Any]]:
    """Return the plain values of ``grid`` in the shape the API echoes them."""

    rows: List[List[Any]] = []
    for cells in grid:
        row = [
            "" if cell.is_empty else (cell.formatted_value if render_formatted else cell.effective_value)
            for cell in cells
        ]
        while row and row[-1] == "":
            row.pop()
        rows.append(row)
    while rows and not rows[-1]:
        rows.pop()
    return rows


def _build_records(keys: Sequence[Optional[str]], lines: Sequence[Sequence[Value]]) -> RecordSet:
    records: RecordSet = []
    for line in lines:
        records.append({key: value for key, value in zip(keys, line) if key is not None})
    return records


def decode_grid(
    grid: Sequence[Sequence[RawCell]],
    options: SyncOptions = SyncOptions(),
    *,
    range_provided: bool = True,
) -> Optional[DecodedGrid]:
    """Decode ``grid`` into records, or return ``None`` when it holds no data."""

    region = detect_region(grid, options.orientation)
    if region is None:
        logger.info("No data found in the fetched grid")
        return None

    block = extract_region(grid, region)
    if options.orientation is Orientation.COLUMNS:
        block = transpose(block)

    heading_cells, *lines = block
    headings = normalize_headings(
        [_heading_text(cell) for cell in heading_cells],
        transform=options.transform_headings,
        range_provided=range_provided,
    )

    decoded_lines = [[decode_cell(cell, options.render_formatted) for cell in line] for line in lines]

    keys = headings.keys
    data: DecodedData
    if len(headings.raw) == 1:
        # A lone heading always names the collection, even when it has no usable key.
        name = keys[0] or headings.raw[0]
        keys = (name,)
        data = FlatValues(name=name, values=[line[0] for line in decoded_lines])
    else:
        data = _build_records(keys, decoded_lines)

    state = SyncState(
        last_grid=freeze_grid(value_grid(grid, options.render_formatted)),
        record_count=len(lines),
        row_offset=region.row_offset,
        column_offset=region.column_offset,
        raw_headings=headings.raw,
        headings=keys,
    )
    logger.debug(
        "Decoded %d data lines from region %s (headings: %s)",
        len(lines),
        region,
        ", ".join(headings.raw),
    )
    return DecodedGrid(data=data, headings=headings, region=region, state=state)


__all__ = [
    "DecodedData",
    "DecodedGrid",
    "FlatValues",
    "Record",
    "RecordSet",
    "decode_grid",
    "value_grid",
]
