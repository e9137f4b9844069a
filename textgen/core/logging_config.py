"""Structured logging for textgen. API keys never reach log output."""

from __future__ import annotations

import json
import logging
import re
import sys
from typing import Any

_SECRET_MARKERS = ("api_key", "authorization", "bearer", "secret", "password")
_API_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}")

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _redact(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_redact(v) for v in obj]
    if isinstance(obj, str):
        if any(s in obj.lower() for s in _SECRET_MARKERS):
            return "[REDACTED]"
        return _API_KEY_RE.sub("sk-[REDACTED]", obj)
    return obj


class StructuredFormatter(logging.Formatter):
    """JSON or key=value lines; extra fields are redacted."""

    def __init__(self, use_json: bool = True) -> None:
        super().__init__()
        self.use_json = use_json

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": _API_KEY_RE.sub("sk-[REDACTED]", record.getMessage()),
        }
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                log_dict[key] = _redact(value)
        if self.use_json:
            return json.dumps(log_dict, default=str)
        return " ".join(f"{k}={v!r}" for k, v in log_dict.items())


def setup_logging(level: str = "INFO", use_json: bool = True) -> None:
    """Configure the root logger once; later calls only change the level."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(StructuredFormatter(use_json=use_json))
        root.addHandler(handler)
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(root.level, logging.WARNING))
