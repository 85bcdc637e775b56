"""
Centralised logging setup for the command-line tool.

* Adds a console handler (human-readable, stderr).
* Optionally adds a daily-rotating file handler under ``log_dir``.
* Routes ``warnings`` through logging and drops records the ``suppress``
  predicate flags as noise.
* Must be called **once** at process start. Worker processes never call it.

Usage
-----
    from solvanity.logging_config import setup_logging
    setup_logging(level="DEBUG")           # optional level override
"""
from __future__ import annotations

import logging
import logging.handlers
import pathlib
from datetime import datetime
from typing import Callable, Literal, Optional

_LEVEL = {
    "CRITICAL": logging.CRITICAL,
    "ERROR":    logging.ERROR,
    "WARNING":  logging.WARNING,
    "INFO":     logging.INFO,
    "DEBUG":    logging.DEBUG,
}

NOISY_WARNING_CATEGORIES = ("CryptographyDeprecationWarning",)

_HANDLER_NAME = "solvanity"


def default_noise_filter(record: logging.LogRecord) -> bool:
    """True for records that should be dropped."""
    if record.name != "py.warnings":
        return False
    message = record.getMessage()
    return any(category in message for category in NOISY_WARNING_CATEGORIES)


class SuppressFilter(logging.Filter):
    def __init__(self, predicate: Callable[[logging.LogRecord], bool]):
        super().__init__()
        self.predicate = predicate

    def filter(self, record: logging.LogRecord) -> bool:
        return not self.predicate(record)


def setup_logging(
    level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO",
    log_dir: Optional[pathlib.Path | str] = None,
    suppress: Optional[Callable[[logging.LogRecord], bool]] = default_noise_filter,
) -> None:
    root = logging.getLogger()
    root.setLevel(_LEVEL[level])

    # Calling twice replaces our handlers instead of stacking them.
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()

    fmt = "%(asctime)s - %(levelname)s - %(name)s: - %(message)s"
    datefmt = "%H:%M:%S"
    handlers: list[logging.Handler] = []

    # ── console ────────────────────────────────────────────────────────────────
    handlers.append(logging.StreamHandler())

    # ── file (rotates at midnight, keeps 7 days) ───────────────────────────────
    if log_dir is not None:
        log_dir = pathlib.Path(log_dir).resolve()
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.TimedRotatingFileHandler(
            filename=log_dir / f"solvanity-{datetime.now():%Y-%m-%d}.log",
            when="midnight",
            backupCount=7,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt, datefmt))
        if suppress is not None:
            handler.addFilter(SuppressFilter(suppress))
        root.addHandler(handler)

    logging.captureWarnings(True)
