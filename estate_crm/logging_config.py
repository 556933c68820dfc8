"""Logging setup: JSON lines in production, readable text locally."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from estate_crm.settings import settings

# LogRecord attributes that are not user supplied extra= fields
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "request_id", "agent_id",
}
_CONTEXT_FIELDS = ("request_id", "agent_id")


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed through logger.info(..., extra={...})."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


def context_fields(record: logging.LogRecord) -> dict[str, str]:
    """Request and agent ids attached by ContextFilter, when set."""
    return {key: getattr(record, key) for key in _CONTEXT_FIELDS if getattr(record, key, "")}


class ContextFilter(logging.Filter):
    """Attach the current request and agent ids to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        from estate_crm.core.request_context import get_agent_id, get_request_id

        record.request_id = get_request_id() or ""
        record.agent_id = get_agent_id() or ""
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, using Cloud Logging's severity key."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat().replace("+00:00", "Z"),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        log_data.update(context_fields(record))
        for key, value in extra_fields(record).items():
            log_data.setdefault(key, value)
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human readable lines with context and extra fields as key=value pairs.

    Example:
        2025-01-05 10:00:00 INFO estate_crm.merge [req-1] Contacts merged agent_id=a1 primary_contact_id=1
    """

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = None

    def format(self, record: logging.LogRecord) -> str:
        parts = [self.formatTime(record), record.levelname, record.name]
        if getattr(record, "request_id", ""):
            parts.append(f"[{record.request_id}]")
        parts.append(record.getMessage())
        if getattr(record, "agent_id", ""):
            parts.append(f"agent_id={record.agent_id}")
        parts.extend(f"{key}={value}" for key, value in extra_fields(record).items())
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure the root logger from settings.

    Args:
        level: Overrides settings.log_level
        log_format: 'json' or 'text'; overrides settings.log_format
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    formatter = TextFormatter() if (log_format or settings.log_format) == "text" else JSONFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(
        logging.INFO if settings.environment == "production" else logging.WARNING
    )
    # SQL echo is controlled by DATABASE_ECHO, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
