"""Decoding of single spreadsheet cells into typed Python values.

The Sheets API describes every cell with an ``effectiveValue`` (one of
``stringValue``, ``numberValue``, ``boolValue`` or ``errorValue``), the text
shown to the user (``formattedValue``) and the number format applied to it.
Dates and times are stored as *serial numbers*: the integer part counts days
since 1899-12-30 and the fractional part is the time of day.

Serial numbers are converted with naive calendar arithmetic so the result
never depends on the timezone of the machine running the sync.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Mapping, Optional, Union

logger = logging.getLogger(__name__)

Scalar = Union[str, int, float, bool]
Value = Union[str, int, float, bool, date, time, datetime, None]

#: Days between the spreadsheet day zero (1899-12-30) and 1970-01-01.
SERIAL_EPOCH_OFFSET = 25569
SECONDS_PER_DAY = 86_400

_UNIX_EPOCH = datetime(1970, 1, 1)


class NumberFormatType(Enum):
    NONE = "NONE"
    DATE = "DATE"
    TIME = "TIME"
    DATE_TIME = "DATE_TIME"

    @classmethod
    def from_api(cls, value: Optional[str]) -> "NumberFormatType":
        """Return the member for an API ``numberFormat.type``; other kinds map to ``NONE``."""

        if value in {"DATE", "TIME", "DATE_TIME"}:
            return cls(value)
        return cls.NONE

    @property
    def is_temporal(self) -> bool:
        return self is not NumberFormatType.NONE


@dataclass(frozen=True)
class RawCell:
    """One cell as returned by ``spreadsheets.get`` with grid data."""

    effective_value: Optional[Scalar] = None
    formatted_value: str = ""
    number_format_type: NumberFormatType = NumberFormatType.NONE

    @property
    def is_empty(self) -> bool:
        return self.effective_value is None

    @classmethod
    def from_api(cls, payload: Optional[Mapping[str, Any]]) -> "RawCell":
        """Build a cell from an API ``CellData`` object."""

        if not payload:
            return EMPTY_CELL
        formatted = payload.get("formattedValue")
        formatted_text = "" if formatted is None else str(formatted)
        effective = payload.get("effectiveValue") or {}

        value: Optional[Scalar]
        if "stringValue" in effective:
            value = str(effective["stringValue"])
        elif "numberValue" in effective:
            value = _normalise_number(effective["numberValue"])
        elif "boolValue" in effective:
            value = bool(effective["boolValue"])
        elif "errorValue" in effective:
            # Errors such as #REF! have no scalar; keep what the user sees.
            value = formatted_text
        else:
            value = None

        return cls(
            effective_value=value,
            formatted_value=formatted_text,
            number_format_type=NumberFormatType.from_api(_number_format_name(payload)),
        )


EMPTY_CELL = RawCell()


def _number_format_name(payload: Mapping[str, Any]) -> Optional[str]:
    for key in ("effectiveFormat", "userEnteredFormat"):
        fmt = payload.get(key)
        if isinstance(fmt, Mapping):
            number_format = fmt.get("numberFormat")
            if isinstance(number_format, Mapping) and number_format.get("type"):
                return str(number_format["type"])
    return None


def _normalise_number(value: Any) -> Union[int, float]:
    number = float(value)
    if number.is_integer() and abs(number) < 2**53:
        return int(number)
    return number


def serial_to_datetime(serial: float) -> datetime:
    """Convert a spreadsheet serial number into a naive :class:`datetime`."""

    seconds = round((float(serial) - SERIAL_EPOCH_OFFSET) * SECONDS_PER_DAY)
    return _UNIX_EPOCH + timedelta(seconds=seconds)


def datetime_to_serial(value: Union[date, datetime]) -> float:
    """Inverse of :func:`serial_to_datetime` for dates and naive datetimes."""

    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    delta = value.replace(tzinfo=None) - _UNIX_EPOCH
    return SERIAL_EPOCH_OFFSET + delta.total_seconds() / SECONDS_PER_DAY


def decode_cell(cell: RawCell, render_formatted: bool = False) -> Value:
    """Return the typed value for ``cell``.

    ``render_formatted`` returns the text exactly as displayed in the sheet.
    Otherwise numbers carrying a ``DATE``, ``TIME`` or ``DATE_TIME`` format are
    converted to :class:`date`, :class:`time` or :class:`datetime`.
    """

    if cell.is_empty:
        return None
    if render_formatted:
        return cell.formatted_value

    value = cell.effective_value
    kind = cell.number_format_type
    if not kind.is_temporal or isinstance(value, bool) or not isinstance(value, (int, float)):
        return value

    try:
        moment = serial_to_datetime(value)
    except (OverflowError, ValueError):
        logger.warning("Serial %r is outside the supported date range; keeping the number", value)
        return value
    if kind is NumberFormatType.DATE:
        return moment.date()
    if kind is NumberFormatType.TIME:
        return moment.time()
    return moment


__all__ = [
    "EMPTY_CELL",
    "NumberFormatType",
    "RawCell",
    "SERIAL_EPOCH_OFFSET",
    "Scalar",
    "Value",
    "datetime_to_serial",
    "decode_cell",
    "serial_to_datetime",
]
