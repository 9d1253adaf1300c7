"""Sync engine: the read/write facade over decoder, encoder and transport.

One :class:`SyncEngine` serves one session against one sheet.  ``read``
replaces the session's :class:`~gridsync.state.SyncState` with what it found
on the sheet; ``write`` encodes records against that state and, once the
server accepts them, replaces the state with the server's echo.  The state is
only swapped after the remote call has returned, so a failed or interrupted
operation leaves it exactly as it was.

Overlapping operations are rejected with :class:`SyncBusyError` rather than
queued.  Remote failures and records that do not fit one heading line never
escape: they come back as a result with ``reason`` set.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterator, List, Optional, Tuple

from gridsync.decoder import DecodedData, decode_grid
from gridsync.encoder import EncodableData, encode_records
from gridsync.errors import (
    FailureReason,
    RemoteUnavailableError,
    SchemaMismatchError,
    SyncBusyError,
    describe_failure,
)
from gridsync.headings import DecodeWarning, WarningKind
from gridsync.settings import SheetTarget, SyncOptions
from gridsync.state import EMPTY_STATE, SyncState, freeze_grid
from gridsync.transport import GridTransport, WriteEcho

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    IDLE = "idle"
    READING = "reading"
    LOADED = "loaded"
    EMPTY = "empty"
    WRITING = "writing"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class ReadResult:
    status: SyncStatus
    data: Optional[DecodedData] = None
    warnings: Tuple[DecodeWarning, ...] = ()
    reason: Optional[FailureReason] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in {SyncStatus.LOADED, SyncStatus.EMPTY}

    @property
    def warning_kinds(self) -> FrozenSet[WarningKind]:
        return frozenset(warning.kind for warning in self.warnings)


@dataclass
class WriteResult:
    accepted: bool
    updated_record_count: int = 0
    reason: Optional[FailureReason] = None
    message: str = ""
    warnings: List[DecodeWarning] = field(default_factory=list)


class SyncEngine:
    """Read and write keyed records from and to one sheet region."""

    def __init__(
        self,
        transport: GridTransport,
        target: SheetTarget,
        options: SyncOptions = SyncOptions(),
    ) -> None:
        self._transport = transport
        self._target = target
        self._options = options
        self._state: SyncState = EMPTY_STATE
        self._status = SyncStatus.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def target(self) -> SheetTarget:
        return self._target

    @property
    def options(self) -> SyncOptions:
        return self._options

    @contextmanager
    def _exclusive(self, busy_status: SyncStatus) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise SyncBusyError(f"Cannot start while the session is {self._status.value}")
        previous = self._status
        self._status = busy_status
        try:
            yield
        except BaseException:
            # Interrupted before a result was recorded; restore the last settled status.
            if self._status is busy_status:
                self._status = previous
            raise
        finally:
            self._lock.release()

    def resolve_target(self) -> SheetTarget:
        """Pick the first visible sheet when neither a sheet nor a range is configured.

        Raises :class:`RemoteUnavailableError` when the sheet list cannot be
        fetched.  Once resolved, later calls return the same target.
        """

        if self._target.is_resolved:
            return self._target
        sheets = self._transport.fetch_sheet_list(self._target.spreadsheet_id)
        visible = next((sheet for sheet in sheets if not sheet.hidden), None)
        if visible is None:
            logger.warning("Spreadsheet %s has no visible sheets", self._target.spreadsheet_id)
            return self._target
        self._target = self._target.with_sheet(visible.title)
        logger.info("Using sheet %r", visible.title)
        return self._target

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def read(self) -> ReadResult:
        with self._exclusive(SyncStatus.READING):
            result = self._read()
            self._status = result.status
            return result

    def _read(self) -> ReadResult:
        try:
            target = self.resolve_target()
            grid = self._transport.fetch_grid(target)
        except RemoteUnavailableError as exc:
            logger.warning("Reading %s failed: %s", self._target.a1 or self._target.spreadsheet_id, exc)
            return ReadResult(
                SyncStatus.FAILED,
                reason=exc.reason,
                message=exc.message or describe_failure(exc.reason),
            )

        try:
            decoded = decode_grid(grid, self._options, range_provided=target.range_provided)
        except SchemaMismatchError as exc:
            logger.warning("Headings on %s are ambiguous: %s", target.a1, exc)
            return ReadResult(SyncStatus.FAILED, reason=FailureReason.SCHEMA_MISMATCH, message=str(exc))

        if decoded is None:
            self._state = EMPTY_STATE
            return ReadResult(SyncStatus.EMPTY)

        self._state = decoded.state
        return ReadResult(SyncStatus.LOADED, data=decoded.data, warnings=decoded.warnings)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def write(self, data: EncodableData) -> WriteResult:
        """Write ``data`` back to the region last read.

        Records that cannot share one heading line are rejected before any
        network call with ``reason`` set to ``SCHEMA_MISMATCH``.
        """

        with self._exclusive(SyncStatus.WRITING):
            state = self._state
            try:
                encoded = encode_records(data, state, self._options.orientation)
            except SchemaMismatchError as exc:
                logger.warning("Records do not fit one heading line: %s", exc)
                self._status = SyncStatus.FAILED
                return WriteResult(accepted=False, reason=FailureReason.SCHEMA_MISMATCH, message=str(exc))
            if encoded.is_empty:
                self._status = SyncStatus.WRITTEN
                return WriteResult(accepted=True, updated_record_count=0)

            warnings: List[DecodeWarning] = []
            try:
                target = self.resolve_target()
                echo = self._write_with_sheet_fallback(target, encoded.values, warnings)
            except RemoteUnavailableError as exc:
                logger.warning("Writing %s failed: %s", self._target.a1 or self._target.spreadsheet_id, exc)
                self._status = SyncStatus.FAILED
                return WriteResult(
                    accepted=False,
                    reason=exc.reason,
                    message=exc.message or describe_failure(exc.reason),
                    warnings=warnings,
                )

            self._state = state.evolve(
                last_grid=freeze_grid(echo.values),
                record_count=encoded.record_count,
                raw_headings=encoded.raw_headings,
                headings=encoded.headings,
            )
            self._status = SyncStatus.WRITTEN
            logger.info("Wrote %d records to %s", encoded.record_count, echo.updated_range or target.a1)
            return WriteResult(
                accepted=True,
                updated_record_count=encoded.record_count,
                warnings=warnings,
            )

    def _write_with_sheet_fallback(
        self,
        target: SheetTarget,
        values: List[List[object]],
        warnings: List[DecodeWarning],
    ) -> WriteEcho:
        render_formatted = self._options.render_formatted
        try:
            return self._transport.write_grid(target, values, render_formatted=render_formatted)
        except RemoteUnavailableError as exc:
            if exc.status != 400 or not target.sheet:
                raise
            titles = {sheet.title for sheet in self._transport.fetch_sheet_list(target.spreadsheet_id)}
            if target.sheet in titles:
                raise
            logger.info("Sheet %r does not exist; creating it", target.sheet)
            self._transport.create_sheet(target.spreadsheet_id, target.sheet)
            warnings.append(DecodeWarning(WarningKind.SHEET_CREATED, detail=target.sheet))
            return self._transport.write_grid(target, values, render_formatted=render_formatted)


__all__ = ["ReadResult", "SyncEngine", "SyncStatus", "WriteResult"]
