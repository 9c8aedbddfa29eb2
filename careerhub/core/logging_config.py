"""
CareerHub - Centralized Logging Configuration
Plain text in development, JSON lines in production.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

# Context variable for request tracing
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
    "thread", "threadName", "message", "taskName", "request_id",
}


def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_var.get() or ""


def set_request_id(request_id: str) -> None:
    """Set request ID in context"""
    request_id_var.set(request_id)


def generate_request_id() -> str:
    """Generate a unique request ID"""
    return str(uuid.uuid4())[:8]


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production.
    Fields passed through ``extra=`` are copied into the payload.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """Readable development formatter that includes the request id."""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or "-"
        return super().format(record)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure the root logger once. Safe to call repeatedly: the handler
    installed by a previous call is replaced.
    """
    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ContextualFormatter(
            "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"
        ))
    handler.set_name("careerhub")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "careerhub":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Quiet noisy libraries
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
