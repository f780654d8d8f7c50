"""
Logging setup.

Installs a text or JSON formatter on the root logger according to
LOG_FORMAT / LOG_LEVEL. Modules keep using `logging.getLogger(__name__)`;
request-scoped fields (request_id, tenant_id, namespace, component) are
passed through `extra=` and rendered when present.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

CONTEXT_FIELDS = ("request_id", "tenant_id", "namespace", "component", "error_code")

_HANDLER_NAME = "tenant_rag"


class StructuredFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    TIMESTAMP - LOGGER - LEVEL - MESSAGE [request_id=X tenant_id=Y]
    """

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        context_parts = []
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(level: str = "INFO", log_format: str = "text", stream: Optional[object] = None) -> logging.Handler:
    """
    Configure the root logger once (idempotent across app reloads).

    Returns:
        The installed handler
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(StructuredFormatter() if log_format == "json" else HumanReadableFormatter())
    root.addHandler(handler)
    return handler
