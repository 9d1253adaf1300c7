"""Session state carried from one read/write to the next."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Tuple

ValueGrid = Tuple[Tuple[Any, ...], ...]


def freeze_grid(rows: Optional[Sequence[Sequence[Any]]]) -> Optional[ValueGrid]:
    if rows is None:
        return None
    return tuple(tuple(row) for row in rows)


@dataclass(frozen=True)
class SyncState:
    """Snapshot of what the sheet looked like after the last read or write.

    ``record_count`` is the number of data lines currently occupied on the
    sheet and decides how many stale lines a shorter write must blank.
    ``row_offset``/``column_offset`` anchor the data block inside the fetched
    range.  ``raw_headings`` keeps the author's heading text and ``headings``
    the record key used for each of those columns (``None`` for columns
    without a usable heading).
    """

    last_grid: Optional[ValueGrid] = None
    record_count: int = 0
    row_offset: int = 0
    column_offset: int = 0
    raw_headings: Optional[Tuple[str, ...]] = None
    headings: Optional[Tuple[Optional[str], ...]] = None

    @property
    def is_empty(self) -> bool:
        return self.last_grid is None and self.raw_headings is None

    @property
    def heading_width(self) -> int:
        return len(self.raw_headings) if self.raw_headings else 0

    def evolve(self, **changes: Any) -> "SyncState":
        return replace(self, **changes)


EMPTY_STATE = SyncState()


__all__ = ["EMPTY_STATE", "SyncState", "ValueGrid", "freeze_grid"]
