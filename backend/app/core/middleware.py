"""
Request middleware — request ids and one access log line per request.

    • X-Request-ID is taken from the caller when it is a short token,
      otherwise generated; it is echoed on the response and bound to the
      logging context for everything the request logs (including the
      detached notification it may start)
    • the access line names the route template (``/api/v1/clients/{client_id}``),
      not the concrete path, so client ids do not end up in access logs
    • health polls that succeed are logged at DEBUG
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Match

from backend.app.core.logging_config import bind_request, reset_request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")
_HEALTH_ROUTES = ("/api/v1/health", "/health/live")


def resolve_request_id(header: Optional[str]) -> str:
    if header and _REQUEST_ID_RE.match(header):
        return header
    return uuid.uuid4().hex[:16]


def route_template(request: Request) -> str:
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match is Match.FULL:
            return getattr(route, "path", request.url.path)
    return "<unmatched>"


def access_log_level(route: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if route in _HEALTH_ROUTES:
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        route = route_template(request)
        token = bind_request(request_id, method=request.method, route=route)
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            latency_ms = round((time.perf_counter() - start) * 1000, 1)
            logger.log(
                access_log_level(route, status_code),
                "%s %s -> %d in %.1fms",
                request.method, route, status_code, latency_ms,
                extra={"route": route, "status_code": status_code, "latency_ms": latency_ms},
            )
            reset_request(token)
