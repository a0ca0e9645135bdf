"""
Logging configuration.

One stdout handler on the root logger; application loggers live under the
"accounts_api" namespace.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime

LOGGER_NAMESPACE = "accounts_api"
_HANDLER_MARK = "_accounts_api_console"


class ConsoleFormatter(logging.Formatter):
    """Human-readable single-line formatter."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        message = f"[{timestamp}] {record.levelname:<8} {record.name}: {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the root logger once and return the application logger."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Handlers installed by other code (test capture, uvicorn) stay in place.
    if not any(getattr(h, _HANDLER_MARK, False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ConsoleFormatter())
        setattr(handler, _HANDLER_MARK, True)
        root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logging.getLogger(LOGGER_NAMESPACE)


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the application logger."""
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
