"""Logging configuration for applications embedding gridsync."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from gridsync.settings import APP_DIR

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_LOG_PATH: Optional[Path] = None


def configure_logging(level: int = logging.INFO, log_path: Optional[Path] = None) -> Path:
    """Attach a file handler for gridsync logs to the root logger.

    Parameters
    ----------
    level:
        Minimum level for the root logger.  An already configured root logger
        keeps the more verbose of its own level and ``level``.
    log_path:
        Destination file, ``gridsync.log`` in the application directory by
        default.

    Returns
    -------
    pathlib.Path
        The path to the log file.
    """

    global _LOG_PATH

    target = Path(log_path) if log_path is not None else APP_DIR / "gridsync.log"
    if _LOG_PATH is not None and _LOG_PATH == target:
        return _LOG_PATH

    target.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.setLevel(level)
    else:
        root_logger.setLevel(min(root_logger.level, level))

    already_configured = any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == str(target.resolve())
        for handler in root_logger.handlers
    )
    if not already_configured:
        file_handler = logging.FileHandler(target, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)

    _LOG_PATH = target
    root_logger.debug("Logging configured. Writing to %s", target)
    return target


def get_log_path() -> Path:
    """Return the active log file, configuring logging if needed."""

    if _LOG_PATH is None:
        return configure_logging()
    return _LOG_PATH


__all__ = ["LOG_FORMAT", "configure_logging", "get_log_path"]
