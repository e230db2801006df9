"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • HTTP-facing exception classes (validation, not found, storage, search)
    • Dependency-level exceptions raised by the cache / queue / search adapters
    • Consistent JSON error response format
    • Automatic logging of unhandled errors

Usage:
    from backend.app.core.errors import (
        NotFoundError,
        StorageError,
        register_error_handlers,
    )

    raise NotFoundError("Client", id="42")
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class WellnessAPIError(Exception):
    """Base exception for all errors surfaced to API callers."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ValidationError(WellnessAPIError):
    """Input validation failed (400)."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any):
        d = {**details}
        if field:
            d["field"] = field
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=d,
        )


class InvalidArgumentError(WellnessAPIError):
    """A required argument is missing or empty (400)."""

    def __init__(self, message: str, *, argument: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_ARGUMENT",
            details={"argument": argument} if argument else None,
        )


class NotFoundError(WellnessAPIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, **identifiers: Any):
        details = {"resource": resource, **identifiers}
        super().__init__(
            message=f"{resource} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class StorageError(WellnessAPIError):
    """Persistence backend failed (500)."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="STORAGE_ERROR",
        )


class SearchError(WellnessAPIError):
    """Search backend failed (500)."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="SEARCH_ERROR",
        )


# ═══════════════════════════════════════════════════════════════════════════
# Dependency Errors (never reach the HTTP layer directly)
# ═══════════════════════════════════════════════════════════════════════════

class DependencyError(Exception):
    """An external dependency call failed."""

    dependency = "unknown"


class CacheError(DependencyError):
    dependency = "cache"


class CacheMiss(CacheError):
    """Key not present in the cache."""

    def __init__(self, key: str):
        super().__init__(f"key '{key}' not found")
        self.key = key


class QueueError(DependencyError):
    dependency = "queue"


class SearchBackendError(DependencyError):
    dependency = "search"


class SearchIndexNotFound(SearchBackendError):
    """The cluster answered, but the requested index does not exist."""

    def __init__(self, index: str):
        super().__init__(f"index '{index}' not found")
        self.index = index


class RepositoryError(DependencyError):
    """Relational store call failed."""

    dependency = "storage"


class RecordNotFound(LookupError):
    """No record with the requested identity exists."""

    def __init__(self, record_id: Any):
        super().__init__(f"record '{record_id}' not found")
        self.record_id = record_id


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "status": status_code,
        }
    }

    if details:
        body["error"]["details"] = details

    # Include request path in non-production
    if request and not settings.is_production:
        body["error"]["path"] = str(request.url.path)
        body["error"]["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


def _describe_validation_errors(exc: RequestValidationError) -> Dict[str, Any]:
    fields = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return {"fields": fields}


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(WellnessAPIError)
    async def handle_api_error(request: Request, exc: WellnessAPIError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "API Error [%s]: %s | details=%s",
            exc.error_code, exc.message, exc.details,
        )
        return _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            exc.details, request,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = _describe_validation_errors(exc)
        logger.warning("Invalid request: %s", details)
        return _build_error_response(
            400, "VALIDATION_ERROR", "Invalid request", details, request,
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        message = str(exc) if settings.DEBUG else "Internal server error"
        return _build_error_response(
            500, "INTERNAL_ERROR", message, request=request,
        )
