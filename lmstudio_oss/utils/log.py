"""Logging utilities for lmstudio-oss.

Every module logs through the single ``lmstudio_oss`` logger. Messages carry a
bracketed component tag (``[client]``, ``[readiness]``, ``[lms]``, ...) and
request details go in ``extra=``, which the file formatter appends as JSON.
"""

import json
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "lmstudio_oss"
LOG_LEVEL_ENV_VAR = "LMSTUDIO_OSS_LOG_LEVEL"

# Attributes every LogRecord has; anything else on a record came from `extra=`.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """UTC ISO timestamps, with the record's `extra=` context as sorted JSON."""

    converter = time.gmtime
    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return message
        return f"{message} | {json.dumps(context, sort_keys=True, default=str)}"


def _env_console_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV_VAR, "WARNING").upper()
    return getattr(logging, level_name, logging.WARNING)


def _file_handlers(logger: logging.Logger) -> list:
    return [h for h in logger.handlers if isinstance(h, logging.FileHandler)]


def attach_file_handler(log_file: Path, logger: Optional[logging.Logger] = None) -> Path:
    """Send debug output to ``log_file``, replacing any previous log file."""
    logger = logger or get_logger()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    for handler in _file_handlers(logger):
        if handler.baseFilename == os.path.abspath(log_file):
            return log_file
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(ContextFormatter("%(asctime)s [%(levelname)s] %(message)s"))
    logger.addHandler(file_handler)
    return log_file


def init_logger(
    log_dir: Optional[Path] = None,
    *,
    console_level: Optional[int] = None,
    name: str = LOGGER_NAME,
) -> logging.Logger:
    """(Re)configure the project logger.

    Args:
        log_dir: When given, debug logs also go to ``lmstudio_oss_<date>.log`` in it.
        console_level: stderr verbosity; defaults to ``$LMSTUDIO_OSS_LOG_LEVEL`` or WARNING.
        name: Logger name, for isolated loggers in tests.
    """
    global _logger
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Handlers filter; the logger itself passes everything so the file sees debug records.
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level if console_level is not None else _env_console_level())
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console)

    if log_dir is not None:
        attach_file_handler(log_dir / f"lmstudio_oss_{datetime.now():%Y%m%d}.log", logger)

    if name == LOGGER_NAME:
        _logger = logger
    return logger


_logger: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Get the project logger, configuring it on first use."""
    if _logger is None:
        return init_logger()
    return _logger
