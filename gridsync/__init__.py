"""Bidirectional transcoding between Google Sheets grids and keyed records.

Applications embedding gridsync call :func:`configure_logging` once at start-up
to send the package's log records to a file.
"""

from gridsync.cells import NumberFormatType, RawCell, decode_cell
from gridsync.decoder import DecodedGrid, FlatValues, decode_grid
from gridsync.encoder import EncodedGrid, encode_records
from gridsync.engine import ReadResult, SyncEngine, SyncStatus, WriteResult
from gridsync.errors import (
    FailureReason,
    GridSyncError,
    RemoteUnavailableError,
    SchemaMismatchError,
    SyncBusyError,
)
from gridsync.headings import DecodeWarning, WarningKind, normalize_headings
from gridsync.logging_config import configure_logging
from gridsync.region import DataRegion, Orientation, detect_region
from gridsync.settings import SheetTarget, SyncOptions
from gridsync.state import SyncState

__version__ = "0.1.0"

__all__ = [
    "DataRegion",
    "DecodeWarning",
    "DecodedGrid",
    "EncodedGrid",
    "FailureReason",
    "FlatValues",
    "GridSyncError",
    "NumberFormatType",
    "Orientation",
    "RawCell",
    "ReadResult",
    "RemoteUnavailableError",
    "SchemaMismatchError",
    "SheetTarget",
    "SyncBusyError",
    "SyncEngine",
    "SyncOptions",
    "SyncState",
    "SyncStatus",
    "WarningKind",
    "WriteResult",
    "configure_logging",
    "decode_cell",
    "decode_grid",
    "detect_region",
    "encode_records",
    "normalize_headings",
]
