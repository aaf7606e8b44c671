"""Structured logging configuration."""

import logging
import sys
from typing import Any

from app.core.config import settings

# Correlation fields callers may pass through ``extra=``
CONTEXT_FIELDS = ("request_id", "user_id", "action", "entity", "tool_call_id")


class StructuredFormatter(logging.Formatter):
    """Key=value formatter used outside development."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured data."""
        # Fixed leading fields
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Workflow correlation, only when the caller supplied it
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        # Tracebacks go last so the fields above stay greppable
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return " ".join(f"{k}={v}" for k, v in log_data.items())


def setup_logging() -> None:
    """Configure the root logger for the service."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Uvicorn and reloads may have installed handlers already
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    # Human readable locally, structured everywhere else
    if settings.is_dev:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = StructuredFormatter()

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)

    # Audit lines are always kept, whatever the service log level
    logging.getLogger("audit").setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class AuditLogger:
    """Mirrors persisted audit events onto the ``audit`` log stream."""

    def __init__(self) -> None:
        self.logger = get_logger("audit")

    def log(
        self,
        action: str,
        actor_type: str,
        actor_id: str | None,
        entity_type: str,
        entity_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log an audit event.

        Voice agent actions carry no actor identity and are logged with ``-``.
        """
        actor = f"{actor_type}:{actor_id or '-'}"
        entity = f"{entity_type}:{entity_id}"
        self.logger.info(
            f"AUDIT: action={action} actor={actor} entity={entity} metadata={metadata or {}}",
            extra={"action": action, "user_id": actor_id, "entity": entity},
        )


audit_logger = AuditLogger()
