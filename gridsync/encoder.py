"""Grid encoder: keyed records back to a rectangle of sheet values.

The encoder lays records out under the heading line that was read from the
sheet, so columns keep their position and the author's heading text is
written back verbatim even when the records use normalised keys.  Two
details keep the write confined to the block that was read:

* when fewer records are written than were read, blank lines are appended so
  the stale lines on the sheet are cleared;
* the block is shifted by the offsets recorded on read, with ``None`` cells in
  the padding.  The Sheets API leaves cells receiving ``null`` untouched, so
  neighbouring content is never overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from gridsync.decoder import FlatValues
from gridsync.errors import SchemaMismatchError
from gridsync.region import Orientation, transpose
from gridsync.state import EMPTY_STATE, SyncState

logger = logging.getLogger(__name__)

EncodableData = Union[FlatValues, Mapping[str, Any], Sequence[Any]]


@dataclass(frozen=True)
class EncodedGrid:
    """Values ready for ``values.update`` plus the heading line they use."""

    values: List[List[Any]]
    raw_headings: Tuple[str, ...] = ()
    headings: Tuple[Optional[str], ...] = ()
    record_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.values


def format_value(value: Any) -> Any:
    """Return ``value`` in a form the API accepts with ``USER_ENTERED`` input."""

    if value is None:
        return ""
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, datetime):
        return value.replace(tzinfo=None).isoformat(sep=" ", timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat(timespec="seconds")
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        raise SchemaMismatchError(f"Nested value {value!r} cannot be stored in a single cell")
    return str(value)


def _as_records(data: EncodableData, state: SyncState) -> List[Mapping[str, Any]]:
    if isinstance(data, FlatValues):
        return [{data.name: value} for value in data.values]
    if isinstance(data, Mapping):
        return [data]

    items = list(data)
    mappings = [item for item in items if isinstance(item, Mapping)]
    if len(mappings) == len(items):
        return mappings
    if mappings:
        raise SchemaMismatchError("Records mix keyed rows and bare values")

    # A bare list of scalars only makes sense against a single-heading block.
    if state.headings and len(state.headings) == 1 and state.headings[0]:
        name = state.headings[0]
        return [{name: value} for value in items]
    raise SchemaMismatchError("Bare values need a named collection (FlatValues)")


def _record_keys(records: Iterable[Mapping[str, Any]]) -> List[str]:
    keys: List[str] = []
    seen = set()
    for record in records:
        for key in record:
            if not isinstance(key, str):
                raise SchemaMismatchError(f"Record key {key!r} is not a string")
            if key not in seen:
                seen.add(key)
                keys.append(key)
    return keys


def _heading_line(
    keys: Sequence[str],
    state: SyncState,
    raw_override: Optional[Sequence[str]],
) -> Tuple[List[Optional[str]], List[str]]:
    columns: List[Optional[str]] = list(state.headings if state.headings is not None else keys)
    if raw_override is not None:
        raw = list(raw_override)
    elif state.headings is not None:
        raw = list(state.raw_headings or ())
    else:
        raw = list(keys)
    if len(raw) != len(columns):
        raise SchemaMismatchError(
            f"Expected {len(columns)} raw headings, got {len(raw)}"
        )

    known = {column for column in columns if column is not None}
    if keys and known and not known.intersection(keys):
        raise SchemaMismatchError(
            "Record keys do not match any heading read from the sheet: " + ", ".join(keys)
        )
    for key in keys:
        if key not in known:
            logger.info("Appending new column %r to the heading line", key)
            columns.append(key)
            raw.append(key)
            known.add(key)
    return columns, raw


def encode_records(
    data: EncodableData,
    state: SyncState = EMPTY_STATE,
    orientation: Orientation = Orientation.ROWS,
    raw_headings_override: Optional[Sequence[str]] = None,
) -> EncodedGrid:
    """Lay ``data`` out as the value grid to write back to the sheet.

    Raises :class:`SchemaMismatchError` when the records cannot share one
    heading line.  Returns an empty grid when there is nothing to write.
    """

    records = _as_records(data, state)
    keys = _record_keys(records)
    columns, raw = _heading_line(keys, state, raw_headings_override)
    if not columns:
        return EncodedGrid(values=[])

    lines: List[List[Any]] = [list(raw)]
    for record in records:
        lines.append(
            [
                None if column is None else format_value(record.get(column))
                for column in columns
            ]
        )

    record_count = len(records)
    stale = state.record_count - record_count
    if stale > 0:
        logger.debug("Blanking %d stale lines", stale)
        lines.extend([[""] * len(columns) for _ in range(stale)])

    block: List[List[Any]] = lines
    if orientation is Orientation.COLUMNS:
        block = transpose(lines)

    width = state.column_offset + max(len(row) for row in block)
    values = [[None] * width for _ in range(state.row_offset)]
    values.extend([None] * state.column_offset + list(row) for row in block)

    return EncodedGrid(
        values=values,
        raw_headings=tuple(raw),
        headings=tuple(columns),
        record_count=record_count,
    )


__all__ = ["EncodableData", "EncodedGrid", "encode_records", "format_value"]
