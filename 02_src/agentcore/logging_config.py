"""Structured logging configuration for the agent runner."""

import json
import logging
import logging.config
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import DEFAULT_LOG_PATH, DEFAULT_TRANSCRIPT_PATH

TRANSCRIPT_LOGGER = "agentcore.transcript"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra context if present
        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


class TranscriptFormatter(logging.Formatter):
    """Plain console line prefixed with an ISO-8601 UTC timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        return f"{ts} {record.getMessage()}"


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    transcript_file: str | None = None,
) -> None:
    """
    Setup structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to log file. Defaults to 04_logs/app.log.
        transcript_file: Path to the raw console transcript.
                   Defaults to 04_logs/transcript.log.
    """
    # Determine log level
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    # Determine log file paths
    if log_file is None:
        log_file = str(DEFAULT_LOG_PATH)
    if transcript_file is None:
        transcript_file = str(DEFAULT_TRANSCRIPT_PATH)

    # Create logs directories if they don't exist
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    Path(transcript_file).parent.mkdir(parents=True, exist_ok=True)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "agentcore.logging_config.JSONFormatter",
            },
            "transcript": {
                "()": "agentcore.logging_config.TranscriptFormatter",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": log_file,
                "maxBytes": 10 * 1024 * 1024,  # 10 MB
                "backupCount": 5,
                "formatter": "json",
                "encoding": "utf-8",
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
            "transcript_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": transcript_file,
                "maxBytes": 10 * 1024 * 1024,
                "backupCount": 2,
                "formatter": "transcript",
                "encoding": "utf-8",
            },
            "transcript_console": {
                "class": "logging.StreamHandler",
                "formatter": "transcript",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            TRANSCRIPT_LOGGER: {
                "level": "INFO",
                "handlers": ["transcript_file", "transcript_console"],
                "propagate": False,
            },
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["file", "console"],
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
