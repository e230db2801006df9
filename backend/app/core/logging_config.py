"""
Logging for the client records service.

Every record passes through RequestContextFilter, which stamps it with the
current request id (or "-" outside a request). Two output formats:

    JSON     one object per line for log shipping; carries the service name
             and the structured extras the service logs with
             (client_id, topic, dependency, latency_ms, status_code, route)
    console  single line, ``HH:MM:SS LEVEL [request_id] logger: message``

Usage:
    from backend.app.core.logging_config import bind_request, setup_logging

    setup_logging()
    token = bind_request("4f2a9c1e", method="POST", route="/api/v1/clients")
    ...
    reset_request(token)
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backend.app.core.config import Settings, settings as default_settings

_request: ContextVar[Optional[Dict[str, str]]] = ContextVar("request", default=None)

# Structured extras copied into JSON entries when a call site provides them
STRUCTURED_FIELDS = (
    "client_id", "topic", "dependency", "latency_ms", "status_code", "route",
)

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aiokafka", "sqlalchemy.engine")


def bind_request(request_id: str, **fields: str) -> Token:
    """Attach request metadata to the current task; returns a reset token."""
    return _request.set({"request_id": request_id, **fields})


def reset_request(token: Token) -> None:
    _request.reset(token)


def current_request() -> Dict[str, str]:
    return _request.get() or {}


class RequestContextFilter(logging.Filter):
    """Adds ``request_id`` to every record so formatters can rely on it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = current_request().get("request_id", "-")
        return True


class JSONFormatter(logging.Formatter):

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        for key in STRUCTURED_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        if record.exc_info and record.exc_info[1]:
            entry["error"] = f"{type(record.exc_info[1]).__name__}: {record.exc_info[1]}"

        return json.dumps(entry, default=str, ensure_ascii=False)


CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"


def setup_logging(config: Optional[Settings] = None) -> None:
    """Install one stdout handler on the root logger (idempotent)."""
    config = config or default_settings
    root = logging.getLogger()
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()

    use_json = config.LOG_JSON if config.LOG_JSON is not None else config.is_production

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    if use_json:
        handler.setFormatter(JSONFormatter(config.APP_NAME))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
