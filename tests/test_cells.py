from __future__ import annotations

import sys
from datetime import date, datetime, time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gridsync.cells import (
    EMPTY_CELL,
    NumberFormatType,
    RawCell,
    datetime_to_serial,
    decode_cell,
    serial_to_datetime,
)


def test_empty_cell_decodes_to_none() -> None:
    assert decode_cell(EMPTY_CELL) is None
    assert decode_cell(EMPTY_CELL, render_formatted=True) is None


def test_formatted_rendering_returns_display_text() -> None:
    cell = RawCell(effective_value=0.25, formatted_value="25%")

    assert decode_cell(cell, render_formatted=True) == "25%"
    assert decode_cell(cell) == 0.25


def test_date_serial_decodes_without_timezone_drift() -> None:
    cell = RawCell(44000, "6/18/2020", NumberFormatType.DATE)

    assert decode_cell(cell) == date(2020, 6, 18)


def test_time_serial_uses_fractional_day() -> None:
    cell = RawCell(0.75, "6:00:00 PM", NumberFormatType.TIME)

    assert decode_cell(cell) == time(18, 0, 0)


def test_date_time_serial_combines_both_parts() -> None:
    cell = RawCell(44000.5, "6/18/2020 12:00:00", NumberFormatType.DATE_TIME)

    value = decode_cell(cell)

    assert value == datetime(2020, 6, 18, 12, 0, 0)
    assert value.isoformat() == "2020-06-18T12:00:00"


def test_date_format_on_text_value_keeps_text() -> None:
    cell = RawCell("next week", "next week", NumberFormatType.DATE)

    assert decode_cell(cell) == "next week"


@pytest.mark.parametrize(
    "serial, expected",
    [
        (25569, datetime(1970, 1, 1)),
        (0, datetime(1899, 12, 30)),
        (44000.25, datetime(2020, 6, 18, 6, 0, 0)),
        (1.0 / 86400 * 0.6, datetime(1899, 12, 30, 0, 0, 1)),
    ],
)
def test_serial_to_datetime(serial: float, expected: datetime) -> None:
    assert serial_to_datetime(serial) == expected


def test_datetime_to_serial_inverts_conversion() -> None:
    assert datetime_to_serial(date(2020, 6, 18)) == 44000
    assert datetime_to_serial(datetime(2020, 6, 18, 12)) == 44000.5


def test_from_api_reads_tagged_values() -> None:
    number = RawCell.from_api(
        {
            "effectiveValue": {"numberValue": 44000},
            "formattedValue": "6/18/2020",
            "effectiveFormat": {"numberFormat": {"type": "DATE", "pattern": "M/d/yyyy"}},
        }
    )
    text = RawCell.from_api({"effectiveValue": {"stringValue": "Al"}, "formattedValue": "Al"})
    flag = RawCell.from_api({"effectiveValue": {"boolValue": True}, "formattedValue": "TRUE"})
    currency = RawCell.from_api(
        {
            "effectiveValue": {"numberValue": 12.5},
            "formattedValue": "$12.50",
            "effectiveFormat": {"numberFormat": {"type": "CURRENCY"}},
        }
    )

    assert number == RawCell(44000, "6/18/2020", NumberFormatType.DATE)
    assert isinstance(number.effective_value, int)
    assert text.effective_value == "Al"
    assert flag.effective_value is True
    assert currency.number_format_type is NumberFormatType.NONE
    assert decode_cell(currency) == 12.5


def test_from_api_error_value_keeps_display_text() -> None:
    cell = RawCell.from_api(
        {"effectiveValue": {"errorValue": {"type": "REF", "message": "bad"}}, "formattedValue": "#REF!"}
    )

    assert decode_cell(cell) == "#REF!"


def test_from_api_blank_payloads_are_empty() -> None:
    assert RawCell.from_api(None).is_empty
    assert RawCell.from_api({}).is_empty
    assert RawCell.from_api({"formattedValue": ""}).is_empty


def test_user_entered_format_is_used_when_effective_missing() -> None:
    cell = RawCell.from_api(
        {
            "effectiveValue": {"numberValue": 0.5},
            "userEnteredFormat": {"numberFormat": {"type": "TIME"}},
        }
    )

    assert decode_cell(cell) == time(12, 0, 0)


@pytest.mark.parametrize("kind", [NumberFormatType.DATE, NumberFormatType.TIME, NumberFormatType.DATE_TIME])
@pytest.mark.parametrize("serial", [3_000_000, -1_000_000, 1e12])
def test_out_of_range_serial_keeps_number(kind: NumberFormatType, serial: float) -> None:
    cell = RawCell(effective_value=serial, formatted_value="###", number_format_type=kind)

    assert decode_cell(cell) == serial
    assert decode_cell(cell, render_formatted=True) == "###"
