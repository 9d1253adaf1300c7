"""Error taxonomy shared by the transcoding core and the Sheets transport.

Decode-time anomalies never raise: they are reported as warnings on the read
result.  The exceptions below cover the remaining cases:

``SchemaMismatchError``
    The records handed to the encoder (or the headings found on a sheet)
    cannot be mapped onto one consistent heading line.

``RemoteUnavailableError``
    Wraps any ``HttpError`` raised by the Google API client together with a
    :class:`FailureReason` the caller can turn into a user-facing message.

``SyncBusyError``
    A read or write was started while another operation was still running on
    the same session.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureReason(str, Enum):
    """Classified cause of a failed remote call."""

    UNAUTHORIZED = "unauthorized"
    READ_PERMISSION_DENIED = "read-permission-denied"
    WRITE_PERMISSION_DENIED = "write-permission-denied"
    SPREADSHEET_NOT_FOUND = "spreadsheet-not-found"
    NO_SHEET_OR_INVALID_RANGE = "no-sheet-or-invalid-range"
    INVALID_RANGE = "invalid-range"
    RANGE_TOO_SMALL = "range-too-small"
    PROTECTED = "protected"
    UNSUPPORTED_DATA_STRUCTURE = "unsupported-data-structure"
    SCHEMA_MISMATCH = "schema-mismatch"
    UNKNOWN = "unknown"


class GridSyncError(Exception):
    """Base exception for gridsync failures."""


class SchemaMismatchError(GridSyncError, ValueError):
    """Raised when records or headings do not form a consistent heading line."""


class SyncBusyError(GridSyncError, RuntimeError):
    """Raised when an operation overlaps another one on the same session."""


class CredentialsError(GridSyncError):
    """Raised when the service account file is missing or invalid."""


class RemoteUnavailableError(GridSyncError):
    """Raised when the Sheets API rejects a request."""

    def __init__(self, status: int, message: str, reason: FailureReason = FailureReason.UNKNOWN) -> None:
        super().__init__(f"HTTP {status}: {message}" if status else message)
        self.status = status
        self.message = message
        self.reason = reason


def classify_http_failure(status: int, message: str, *, writing: bool = False) -> FailureReason:
    """Map an HTTP status and API error message onto a :class:`FailureReason`."""

    text = message or ""
    if status == 401:
        return FailureReason.UNAUTHORIZED
    if status == 403:
        if "protected cell or object" in text:
            return FailureReason.PROTECTED
        return FailureReason.WRITE_PERMISSION_DENIED if writing else FailureReason.READ_PERMISSION_DENIED
    if status == 404:
        return FailureReason.SPREADSHEET_NOT_FOUND
    if status == 400:
        if text.startswith("Unable to parse range"):
            return FailureReason.NO_SHEET_OR_INVALID_RANGE if not writing else FailureReason.INVALID_RANGE
        if text.startswith("Requested writing within range"):
            return FailureReason.RANGE_TOO_SMALL
        if "protected cell or object" in text:
            return FailureReason.PROTECTED
        if text.startswith("Invalid values"):
            return FailureReason.UNSUPPORTED_DATA_STRUCTURE
        if not writing:
            return FailureReason.NO_SHEET_OR_INVALID_RANGE
    return FailureReason.UNKNOWN


def describe_failure(reason: Optional[FailureReason]) -> str:
    """Return a short English description for ``reason``."""

    if reason is None:
        return ""
    return _DESCRIPTIONS.get(reason, _DESCRIPTIONS[FailureReason.UNKNOWN])


_DESCRIPTIONS = {
    FailureReason.UNAUTHORIZED: "The access token is missing or no longer valid.",
    FailureReason.READ_PERMISSION_DENIED: "You don't have permission to read data from the spreadsheet.",
    FailureReason.WRITE_PERMISSION_DENIED: "You don't have permission to save data to the spreadsheet.",
    FailureReason.SPREADSHEET_NOT_FOUND: "We couldn't find the spreadsheet you specified.",
    FailureReason.NO_SHEET_OR_INVALID_RANGE: (
        "There is no sheet with the specified name in the spreadsheet, and/or the data range is invalid."
    ),
    FailureReason.INVALID_RANGE: "The format used to specify the data range for storing data is invalid.",
    FailureReason.RANGE_TOO_SMALL: "The range you specified isn't large enough to store all your data.",
    FailureReason.PROTECTED: "The sheet or range is protected.",
    FailureReason.UNSUPPORTED_DATA_STRUCTURE: "The data has a structure that cannot be stored in a sheet.",
    FailureReason.SCHEMA_MISMATCH: "The headings do not form a consistent set of keys.",
    FailureReason.UNKNOWN: "The spreadsheet request failed.",
}


__all__ = [
    "CredentialsError",
    "FailureReason",
    "GridSyncError",
    "RemoteUnavailableError",
    "SchemaMismatchError",
    "SyncBusyError",
    "classify_http_failure",
    "describe_failure",
]
