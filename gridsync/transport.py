"""Google Sheets transport used by the sync engine.

The engine only needs four remote operations and talks to them through the
:class:`GridTransport` protocol:

``fetch_grid``
    ``spreadsheets.get`` with grid data for one sheet/range, returned as rows
    of :class:`~gridsync.cells.RawCell`.

``fetch_sheet_list``
    Sheet titles and visibility, used to pick a default sheet.

``write_grid``
    ``spreadsheets.values.update`` with ``includeValuesInResponse`` so the
    caller receives the values the server actually stored.

``create_sheet``
    ``spreadsheets.batchUpdate`` with a single ``addSheet`` request.

:class:`SheetsTransport` implements the protocol on top of
``google-api-python-client``.  Rate limiting and transient server errors are
retried here with exponential backoff; every other ``HttpError`` is wrapped in
:class:`~gridsync.errors.RemoteUnavailableError`.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from gridsync.cells import RawCell
from gridsync.credentials import load_credentials
from gridsync.errors import RemoteUnavailableError, classify_http_failure
from gridsync.region import RawGrid
from gridsync.settings import SheetTarget

logger = logging.getLogger(__name__)

RETRIABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
MAX_RETRY_ATTEMPTS = 5
BACKOFF_SCHEDULE = (1, 2, 4, 8, 16)

GRID_FIELDS = (
    "sheets(properties(title),data(startRow,startColumn,"
    "rowData(values(effectiveValue,formattedValue,effectiveFormat/numberFormat))))"
)
SHEET_LIST_FIELDS = "sheets.properties(sheetId,title,hidden)"


@dataclass(frozen=True)
class SheetInfo:
    title: str
    hidden: bool = False
    sheet_id: Optional[int] = None


@dataclass
class WriteEcho:
    """What the server reports after a successful ``values.update``."""

    values: List[List[Any]] = field(default_factory=list)
    updated_range: str = ""
    updated_cells: int = 0


class GridTransport(Protocol):
    def fetch_grid(self, target: SheetTarget) -> RawGrid:
        ...

    def fetch_sheet_list(self, spreadsheet_id: str) -> List[SheetInfo]:
        ...

    def write_grid(
        self,
        target: SheetTarget,
        values: Sequence[Sequence[Any]],
        *,
        render_formatted: bool = False,
    ) -> WriteEcho:
        ...

    def create_sheet(self, spreadsheet_id: str, title: str) -> None:
        ...


def _http_status(exc: HttpError) -> int:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        return int(status)
    except (TypeError, ValueError):
        return 0


def _http_message(exc: HttpError) -> str:
    content = getattr(exc, "content", b"")
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    try:
        payload = json.loads(content) if content else {}
    except ValueError:
        payload = {}
    if isinstance(payload, Mapping):
        error = payload.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
    reason = getattr(exc, "reason", None)
    if reason:
        return str(reason)
    return str(exc)


def wrap_http_error(exc: HttpError, *, writing: bool = False) -> RemoteUnavailableError:
    status = _http_status(exc)
    message = _http_message(exc)
    return RemoteUnavailableError(status, message, classify_http_failure(status, message, writing=writing))


def _parse_grid(response: Mapping[str, Any]) -> RawGrid:
    sheets = response.get("sheets") or []
    if not sheets:
        return []
    data = sheets[0].get("data") or []
    if not data:
        return []
    row_data = data[0].get("rowData") or []
    return [[RawCell.from_api(cell) for cell in (row or {}).get("values", [])] for row in row_data]


class SheetsTransport:
    """:class:`GridTransport` speaking to the Sheets REST API."""

    def __init__(
        self,
        service,
        *,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._service = service
        self._max_attempts = max(1, max_attempts)
        self._sleep = sleep

    @classmethod
    def from_credentials_file(cls, path: Path, **kwargs: Any) -> "SheetsTransport":
        credentials = load_credentials(Path(path))
        service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(service, **kwargs)

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------
    def _execute(self, request, description: str, *, writing: bool = False) -> Dict[str, Any]:
        attempt = 0
        while True:
            try:
                return request.execute()
            except HttpError as exc:
                status = _http_status(exc)
                if status not in RETRIABLE_STATUSES or attempt >= self._max_attempts - 1:
                    logger.warning("Sheets API %s failed with status %s", description, status)
                    raise wrap_http_error(exc, writing=writing) from exc
                delay = BACKOFF_SCHEDULE[min(attempt, len(BACKOFF_SCHEDULE) - 1)]
                attempt += 1
                logger.warning(
                    "Sheets API %s error (%s). Retrying in %ss (%d/%d)",
                    description,
                    status,
                    delay,
                    attempt,
                    self._max_attempts,
                )
                self._sleep(delay)

    # ------------------------------------------------------------------
    # GridTransport
    # ------------------------------------------------------------------
    def fetch_grid(self, target: SheetTarget) -> RawGrid:
        ranges = [target.a1] if target.a1 else []
        request = self._service.spreadsheets().get(
            spreadsheetId=target.spreadsheet_id,
            ranges=ranges,
            includeGridData=True,
            fields=GRID_FIELDS,
        )
        grid = _parse_grid(self._execute(request, "spreadsheets.get"))
        logger.debug("Fetched %d rows from %s", len(grid), target.a1 or target.spreadsheet_id)
        return grid

    def fetch_sheet_list(self, spreadsheet_id: str) -> List[SheetInfo]:
        request = self._service.spreadsheets().get(
            spreadsheetId=spreadsheet_id,
            includeGridData=False,
            fields=SHEET_LIST_FIELDS,
        )
        response = self._execute(request, "spreadsheets.get")
        sheets: List[SheetInfo] = []
        for sheet in response.get("sheets", []):
            props = sheet.get("properties", {}) if isinstance(sheet, Mapping) else {}
            title = props.get("title")
            if not isinstance(title, str):
                continue
            sheet_id = props.get("sheetId")
            sheets.append(
                SheetInfo(
                    title=title,
                    hidden=bool(props.get("hidden", False)),
                    sheet_id=sheet_id if isinstance(sheet_id, int) else None,
                )
            )
        return sheets

    def write_grid(
        self,
        target: SheetTarget,
        values: Sequence[Sequence[Any]],
        *,
        render_formatted: bool = False,
    ) -> WriteEcho:
        body = {
            "range": target.a1,
            "majorDimension": "ROWS",
            "values": [list(row) for row in values],
        }
        request = self._service.spreadsheets().values().update(
            spreadsheetId=target.spreadsheet_id,
            range=target.a1,
            valueInputOption="USER_ENTERED",
            includeValuesInResponse=True,
            responseValueRenderOption="FORMATTED_VALUE" if render_formatted else "UNFORMATTED_VALUE",
            body=body,
        )
        response = self._execute(request, "values.update", writing=True)
        updated = response.get("updatedData") or {}
        return WriteEcho(
            values=[list(row) for row in updated.get("values", [])],
            updated_range=str(response.get("updatedRange", "")),
            updated_cells=int(response.get("updatedCells", 0) or 0),
        )

    def create_sheet(self, spreadsheet_id: str, title: str) -> None:
        request = self._service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": [{"addSheet": {"properties": {"title": title}}}]},
        )
        self._execute(request, "spreadsheets.batchUpdate", writing=True)
        logger.info("Created sheet %r in spreadsheet %s", title, spreadsheet_id)


__all__ = [
    "GridTransport",
    "SheetInfo",
    "SheetsTransport",
    "WriteEcho",
    "wrap_http_error",
]
