"""
FastAPI route: composite dependency health.

    GET /api/v1/health — 200 when every dependency is available, else 503
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.app.api.deps import get_health_reporter
from backend.app.api.schemas import HealthResponse
from backend.app.core.health import HealthReporter

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
    summary="Dependency health",
)
async def check_health(reporter: HealthReporter = Depends(get_health_reporter)):
    report = await reporter.check_health()
    return JSONResponse(
        status_code=200 if report.is_ok else 503,
        content=report.to_dict(),
    )
