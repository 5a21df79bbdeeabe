from __future__ import annotations

import json
import logging
import re
import sys
import time
from typing import Any, Dict, Optional

from config.settings import settings

# CPSMS authenticates with the password in the query string, so any logged URL leaks it.
_PASSWORD_RE = re.compile(r"(password=)[^&\s\"'<>]*", re.I)


def redact(text: str) -> str:
    return _PASSWORD_RE.sub(r"\1***", text)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time_unix": time.time(),
        }
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(record.extra)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for k, v in payload.items():
            if isinstance(v, str):
                payload[k] = redact(v)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    """Install JSON logging on the root logger. Called once by the embedding application."""
    root = logging.getLogger()
    root.setLevel(level or settings.LOG_LEVEL)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    root.handlers[:] = [handler]
