"""
Structured logging for BizBud.

Call sites pass context as keyword fields:

    logger.info("Session created", site_id=site_id)

Fields end up in the JSON payload (LOG_FORMAT=json) or appended as
key=value pairs in the human-readable format.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Tuple

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
site_id_var: ContextVar[str] = ContextVar("site_id", default="")

_STD_KWARGS = {"exc_info", "stack_info", "stacklevel", "extra"}


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that accepts arbitrary keyword fields."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k not in _STD_KWARGS}
        extra = dict(kwargs.get("extra") or {})
        extra["extra_fields"] = {**extra.get("extra_fields", {}), **fields}
        kwargs["extra"] = extra
        return msg, kwargs


def _context() -> Dict[str, str]:
    ctx = {}
    request_id = request_id_var.get()
    if request_id:
        ctx["request_id"] = request_id
    site_id = site_id_var.get()
    if site_id:
        ctx["site_id"] = site_id
    return ctx


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context())
        payload.update(getattr(record, "extra_fields", {}) or {})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        fields = {**_context(), **(getattr(record, "extra_fields", {}) or {})}
        suffix = " ".join(f"{k}={v}" for k, v in fields.items())
        line = f"{timestamp} {record.levelname:8} {record.name:30} {record.getMessage()}"
        if suffix:
            line += f" [{suffix}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger once at startup."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    # Quiet down chatty libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module"""
    return StructuredLogger(logging.getLogger(name), {})


def set_request_context(request_id: str = "", site_id: str = "") -> None:
    if request_id:
        request_id_var.set(request_id)
    if site_id:
        site_id_var.set(site_id)


def clear_request_context() -> None:
    request_id_var.set("")
    site_id_var.set("")
