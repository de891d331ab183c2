"""Logging configuration for the account deletion service.

One named application logger writes to stdout and, unless LOG_FILE is set
to an empty string, to a rotating file. Service modules log through
children of it (``get_logger(__name__)``) so they share both sinks.
"""

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.utils.environment import is_debug

LOGGER_NAME = "account-deletion"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# pendingToken=<value> as it appears in confirm-page URLs
_TOKEN_IN_URL = re.compile(r"(pendingToken=)([^&\s]+)")


class TokenRedactingFilter(logging.Filter):
    """Masks pending tokens that slip into log lines inside URLs."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "pendingToken=" in message:
            record.msg = _TOKEN_IN_URL.sub(lambda m: m.group(1) + redact_token(m.group(2)), message)
            record.args = None
        return True


def _file_handler(log_file: str, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    name: str = LOGGER_NAME,
    log_file: str | None = None,
    log_level: str | None = None,
) -> logging.Logger:
    """Configure and return the application logger.

    Args:
        name: Logger name
        log_file: Path to log file (default: LOG_FILE env or logs/app.log;
            an empty LOG_FILE disables file logging)
        log_level: Log level (default: LOG_LEVEL env, DEBUG locally, INFO elsewhere)

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "DEBUG" if is_debug() else "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    log = logging.getLogger(name)
    log.setLevel(level)
    if log.handlers:
        return log

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    # On the handlers so records from child loggers are covered too
    redactor = TokenRedactingFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    console.addFilter(redactor)
    log.addHandler(console)

    if log_file is None:
        log_file = os.getenv("LOG_FILE", "logs/app.log")
    if log_file:
        try:
            file_handler = _file_handler(log_file, level, formatter)
            file_handler.addFilter(redactor)
            log.addHandler(file_handler)
        except OSError as e:
            log.warning(f"Failed to create file handler for {log_file}: {e}")

    log.propagate = False
    return log


logger = setup_logger()


def get_logger(name: str) -> logging.Logger:
    """Child of the application logger, e.g. ``account-deletion.app.services...``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def redact_token(token: str | None) -> str:
    """Shorten a bearer token for log lines."""
    if not token:
        return "<none>"
    return f"{token[:6]}..."
