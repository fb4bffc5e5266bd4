"""
Per-module loggers for wsc.

Console output goes through Rich. Two environment variables adjust it:

``WSC_LOG_LEVEL``
    Default level for loggers created without an explicit one (INFO).
``WSC_LOG_FILE``
    When set, every record is also appended to this file as one JSON object
    per line, so speed test runs can be replayed or graphed later.
"""

import json
import logging
import os

from rich.logging import RichHandler

LEVEL_ENV = "WSC_LOG_LEVEL"
FILE_ENV = "WSC_LOG_FILE"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; tracebacks go under ``exc``."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _console_handler() -> logging.Handler:
    return RichHandler(rich_tracebacks=True, show_path=False)


def _json_file_handler(path: str) -> logging.Handler:
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(JSONFormatter())
    return handler


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Logger for a wsc module, usually called as ``get_logger(__name__)``.

    Handlers are attached the first time a name is seen; later calls only
    update the level. ``level`` overrides ``WSC_LOG_LEVEL``.
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO").upper()

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    handlers = [_console_handler()]
    log_file = os.environ.get(FILE_ENV)
    if log_file:
        handlers.append(_json_file_handler(log_file))
    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger
