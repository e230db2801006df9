"""
FastAPI dependencies — resolve services from the application container.
"""

from __future__ import annotations

from fastapi import Request

from backend.app.clients.service import ClientService
from backend.app.core.container import Dependencies
from backend.app.core.health import HealthReporter


def get_container(request: Request) -> Dependencies:
    return request.app.state.deps


def get_client_service(request: Request) -> ClientService:
    return get_container(request).clients


def get_health_reporter(request: Request) -> HealthReporter:
    return get_container(request).health
