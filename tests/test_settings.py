from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gridsync.region import Orientation
from gridsync.settings import (
    SheetTarget,
    SyncOptions,
    SyncSettings,
    is_sheets_url,
    load_sync_settings,
    parse_spreadsheet_id,
    quote_sheet_title,
    save_sync_settings,
)


def test_parse_spreadsheet_id_from_url() -> None:
    url = "https://docs.google.com/spreadsheets/d/abc123XYZ/edit?usp=sharing#gid=0"

    assert is_sheets_url(url)
    assert parse_spreadsheet_id(url) == "abc123XYZ"
    assert parse_spreadsheet_id("  abc123XYZ ") == "abc123XYZ"
    assert parse_spreadsheet_id("") == ""


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Data", "'Data'"),
        ("My Sheet", "'My Sheet'"),
        ("Bob's", "'Bob''s'"),
        ("'Quoted'", "'Quoted'"),
    ],
)
def test_quote_sheet_title(title: str, expected: str) -> None:
    assert quote_sheet_title(title) == expected


@pytest.mark.parametrize(
    "sheet, range_, expected",
    [
        ("Data", None, "'Data'"),
        ("Data", "B2:D9", "'Data'!B2:D9"),
        (None, "B2:D9", "B2:D9"),
        (None, None, ""),
    ],
)
def test_sheet_target_a1(sheet, range_, expected) -> None:
    target = SheetTarget("https://docs.google.com/spreadsheets/d/abc/edit", sheet=sheet, range=range_)

    assert target.spreadsheet_id == "abc"
    assert target.a1 == expected
    assert target.range_provided is bool(range_)


def test_options_from_string() -> None:
    options = SyncOptions.from_string("formattedValues, dataInColumns; transformHeadings : false")

    assert options.render_formatted is True
    assert options.orientation is Orientation.COLUMNS
    assert options.transform_headings is False


def test_options_from_string_ignores_unknown_entries() -> None:
    assert SyncOptions.from_string("shiny, transform_headings") == SyncOptions(transform_headings=True)
    assert SyncOptions.from_string("") == SyncOptions()


def test_missing_settings_file_is_created_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"

    settings = load_sync_settings(str(path))

    assert path.exists()
    assert settings.options == SyncOptions()
    assert json.loads(path.read_text(encoding="utf-8"))["options"]["data_in_columns"] is False


def test_settings_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    settings = SyncSettings(
        spreadsheet_id="abc",
        credential_path=str(tmp_path / "sa.json"),
        sheet="People",
        range="A1:F50",
        options=SyncOptions(orientation=Orientation.COLUMNS, transform_headings=True),
    )

    save_sync_settings(settings, str(path))
    loaded = load_sync_settings(str(path))

    assert loaded == settings
    assert loaded.target().a1 == "'People'!A1:F50"


def test_option_string_in_settings_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"spreadsheet_id": "abc", "options": "formattedValues"}), encoding="utf-8")

    loaded = load_sync_settings(str(path))

    assert loaded.options.render_formatted is True
    assert loaded.sheet is None


def test_corrupt_settings_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    loaded = load_sync_settings(str(path))

    assert loaded.options == SyncOptions()
    assert loaded.range is None
