from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gridsync import configure_logging, logging_config


@pytest.fixture
def fresh_root_logger(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(logging_config, "_LOG_PATH", None)
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_configure_logging_is_idempotent(tmp_path: Path, fresh_root_logger: logging.Logger) -> None:
    before = list(fresh_root_logger.handlers)
    log_path = tmp_path / "logs" / "gridsync.log"

    first = configure_logging(log_path=log_path)
    second = configure_logging(log_path=log_path)

    added = [handler for handler in fresh_root_logger.handlers if handler not in before]
    assert first == second == log_path
    assert len(added) == 1
    assert logging_config.get_log_path() == log_path


def test_gridsync_records_reach_the_log_file(tmp_path: Path, fresh_root_logger: logging.Logger) -> None:
    log_path = tmp_path / "gridsync.log"
    configure_logging(log_path=log_path)

    logging.getLogger("gridsync.engine").warning("Writing %s failed", "'Data'")
    for handler in fresh_root_logger.handlers:
        handler.flush()

    assert "[WARNING] gridsync.engine: Writing 'Data' failed" in log_path.read_text(encoding="utf-8")
