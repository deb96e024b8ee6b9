"""Logging setup shared by the library, the CLI and the server."""

from __future__ import annotations

import logging
import sys

from coursetree.config import COURSETREE_LOG_LEVEL

_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ExtraFormatter(logging.Formatter):
    """Formatter that appends ``extra={...}`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = {key: value for key, value in vars(record).items() if key not in _RESERVED}
        if not extras:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{message} | {pairs}"


def configure_logging(level: str | int = COURSETREE_LOG_LEVEL) -> None:
    """Install the coursetree handler on the root logger once."""
    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(handler.formatter, ExtraFormatter) for handler in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ExtraFormatter(_FORMAT))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring logging on first use."""
    configure_logging()
    return logging.getLogger(name)
