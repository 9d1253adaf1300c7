"""Configuration helpers for gridsync."""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from gridsync.region import Orientation

logger = logging.getLogger(__name__)

_APP_ENV_VARS: Iterable[str] = ("LOCALAPPDATA", "APPDATA")


def _detect_base_directory() -> Path:
    override = os.environ.get("GRIDSYNC_HOME")
    if override:
        return Path(override).expanduser().resolve()
    for env_var in _APP_ENV_VARS:
        value = os.environ.get(env_var)
        if value:
            return Path(value).expanduser().resolve() / "gridsync"
    return Path.home().resolve() / ".gridsync"


APP_DIR: Path = _detect_base_directory()

DEFAULT_SETTINGS_PATH = os.getenv("GRIDSYNC_SETTINGS_PATH", str(APP_DIR / "settings.json"))
DEFAULT_SPREADSHEET_ID = os.getenv("GRIDSYNC_SPREADSHEET_ID", "")
DEFAULT_CREDENTIALS_PATH = os.getenv(
    "GRIDSYNC_CREDENTIALS_PATH",
    str(APP_DIR / "credentials" / "service_account.json"),
)

_SHEETS_URL_RE = re.compile(r"^https://docs\.google\.com/spreadsheets/?.*")
_OPTION_SPLIT_RE = re.compile(r"[,;\s]+")
_FALSE_WORDS = {"0", "false", "no", "off"}

# camelCase option names plus their snake_case forms.
_OPTION_ALIASES: Mapping[str, str] = {
    "formattedvalues": "render_formatted",
    "render_formatted": "render_formatted",
    "dataincolumns": "data_in_columns",
    "data_in_columns": "data_in_columns",
    "transformheadings": "transform_headings",
    "transform_headings": "transform_headings",
}


def is_sheets_url(value: str) -> bool:
    """Return ``True`` when ``value`` points at a Google Sheets document."""

    return bool(_SHEETS_URL_RE.match((value or "").strip()))


def parse_spreadsheet_id(value: str) -> str:
    """Normalise a spreadsheet identifier from raw input or URL."""

    if not value:
        return ""
    value = value.strip()
    if "/spreadsheets/d/" in value:
        value = value.split("/spreadsheets/d/", 1)[1]
        value = value.split("/", 1)[0]
    if "?" in value:
        value = value.split("?", 1)[0]
    if "#" in value:
        value = value.split("#", 1)[0]
    return value


def quote_sheet_title(title: str) -> str:
    """Return ``title`` quoted for A1 notation (``Bob's`` -> ``'Bob''s'``)."""

    safe = (title or "").strip()
    if len(safe) >= 2 and safe[0] == safe[-1] and safe[0] in {"'", '"'}:
        safe = safe[1:-1].replace("''", "'")
    return "'" + safe.replace("'", "''") + "'"


@dataclass(frozen=True)
class SyncOptions:
    """How a sheet is read and written."""

    orientation: Orientation = Orientation.ROWS
    render_formatted: bool = False
    transform_headings: bool = False

    @classmethod
    def from_string(cls, text: str) -> "SyncOptions":
        """Parse an option string such as ``"formattedValues, dataInColumns"``.

        Each entry may carry an explicit value (``transformHeadings: false``).
        Unknown entries are logged and ignored.
        """

        flags: Dict[str, bool] = {}
        normalised = re.sub(r"\s*:\s*", ":", text or "")
        for token in _OPTION_SPLIT_RE.split(normalised):
            if not token:
                continue
            name, _, raw_value = token.partition(":")
            target = _OPTION_ALIASES.get(name.lower())
            if target is None:
                logger.warning("Ignoring unknown sync option %r", name)
                continue
            flags[target] = raw_value.lower() not in _FALSE_WORDS if raw_value else True

        return cls(
            orientation=Orientation.COLUMNS if flags.get("data_in_columns") else Orientation.ROWS,
            render_formatted=flags.get("render_formatted", False),
            transform_headings=flags.get("transform_headings", False),
        )

    def to_json(self) -> Dict[str, object]:
        return {
            "data_in_columns": self.orientation is Orientation.COLUMNS,
            "render_formatted": self.render_formatted,
            "transform_headings": self.transform_headings,
        }


@dataclass(frozen=True)
class SheetTarget:
    """Spreadsheet, optional sheet title and optional A1 range to sync with."""

    spreadsheet_id: str
    sheet: Optional[str] = None
    range: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "spreadsheet_id", parse_spreadsheet_id(self.spreadsheet_id))

    @property
    def range_provided(self) -> bool:
        return bool(self.range)

    @property
    def is_resolved(self) -> bool:
        return bool(self.sheet or self.range)

    @property
    def a1(self) -> str:
        """``'Sheet'!Range``, ``'Sheet'`` or ``Range`` depending on what is set."""

        sheet = quote_sheet_title(self.sheet) if self.sheet else ""
        if not self.range:
            return sheet
        return f"{sheet}!{self.range}" if sheet else self.range

    def with_sheet(self, title: str) -> "SheetTarget":
        return replace(self, sheet=title)


@dataclass
class SyncSettings:
    spreadsheet_id: str = DEFAULT_SPREADSHEET_ID
    credential_path: str = DEFAULT_CREDENTIALS_PATH
    sheet: Optional[str] = None
    range: Optional[str] = None
    options: SyncOptions = field(default_factory=SyncOptions)

    def target(self) -> SheetTarget:
        return SheetTarget(spreadsheet_id=self.spreadsheet_id, sheet=self.sheet, range=self.range)

    def to_json(self) -> Dict[str, object]:
        return {
            "spreadsheet_id": self.spreadsheet_id,
            "credential_path": self.credential_path,
            "sheet": self.sheet or "",
            "range": self.range or "",
            "options": self.options.to_json(),
        }


def _default_settings() -> Dict[str, object]:
    return SyncSettings().to_json()


def _ensure_settings_file(path: str) -> Dict[str, object]:
    defaults = _default_settings()
    if not os.path.exists(path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(defaults, handle, indent=2)
        return defaults

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read settings from %s, using defaults: %s", path, exc)
        return defaults
    if not isinstance(data, dict):
        return defaults

    merged = dict(defaults)
    for key, value in data.items():
        if key == "options" and isinstance(value, (dict, str)):
            merged[key] = value
        elif key in defaults and isinstance(value, str):
            merged[key] = value
    return merged


def _coerce_options(value: object) -> SyncOptions:
    if isinstance(value, str):
        return SyncOptions.from_string(value)
    if not isinstance(value, Mapping):
        return SyncOptions()
    return SyncOptions(
        orientation=Orientation.COLUMNS if value.get("data_in_columns") is True else Orientation.ROWS,
        render_formatted=value.get("render_formatted") is True,
        transform_headings=value.get("transform_headings") is True,
    )


def _optional_text(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def load_sync_settings(path: str = DEFAULT_SETTINGS_PATH) -> SyncSettings:
    data = _ensure_settings_file(path)
    return SyncSettings(
        spreadsheet_id=parse_spreadsheet_id(str(data.get("spreadsheet_id") or DEFAULT_SPREADSHEET_ID)),
        credential_path=str(data.get("credential_path") or DEFAULT_CREDENTIALS_PATH),
        sheet=_optional_text(data.get("sheet")),
        range=_optional_text(data.get("range")),
        options=_coerce_options(data.get("options")),
    )


def save_sync_settings(settings: SyncSettings, path: str = DEFAULT_SETTINGS_PATH) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8") as handle:
        json.dump(settings.to_json(), handle, indent=2)


__all__ = [
    "APP_DIR",
    "DEFAULT_CREDENTIALS_PATH",
    "DEFAULT_SETTINGS_PATH",
    "DEFAULT_SPREADSHEET_ID",
    "SheetTarget",
    "SyncOptions",
    "SyncSettings",
    "is_sheets_url",
    "load_sync_settings",
    "parse_spreadsheet_id",
    "quote_sheet_title",
    "save_sync_settings",
]
