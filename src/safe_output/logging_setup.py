"""Logging configuration for the safe-output command line.

Library modules only create loggers; handlers are attached here, once per
process, from the merged config.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Mapping

_PACKAGE = "safe_output"
_LOG_BYTES = 1 * 1024 * 1024  # 1 MiB per file
_LOG_BACKUPS = 3


def _file_handler(log_file: Path, *, report_errors: bool) -> logging.Handler | None:
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as exc:
        if report_errors:
            print(f"safe-output: WARNING: could not open log file {log_file}: {exc}", file=sys.stderr)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter("safe-output: %(message)s"))
    return handler


def configure(
    settings: Mapping[str, Any],
    *,
    debug: bool = False,
    payload_on_stderr: bool = False,
    reconfigure: bool = False,
) -> None:
    """Attach handlers to the safe_output package logger.

    *settings* is the merged config; its ``log_file`` (empty disables the
    file log) and ``debug`` keys are used. When *payload_on_stderr* is set,
    stderr carries written data, so nothing else is ever printed there.
    Idempotent unless *reconfigure* is True.
    """
    pkg_logger = logging.getLogger(_PACKAGE)
    if pkg_logger.handlers and not reconfigure:
        return
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    pkg_logger.setLevel(logging.DEBUG if debug or settings.get("debug") else logging.INFO)

    log_file = settings.get("log_file")
    if log_file:
        fh = _file_handler(Path(str(log_file)), report_errors=not payload_on_stderr)
        if fh is not None:
            pkg_logger.addHandler(fh)

    if not payload_on_stderr:
        pkg_logger.addHandler(_console_handler())
    elif not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())

    pkg_logger.propagate = False
