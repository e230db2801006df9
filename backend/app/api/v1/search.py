"""
FastAPI route: full-text client search.

    GET /api/v1/search?q=<query> — raw Elasticsearch response body
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from backend.app.api.deps import get_client_service
from backend.app.clients.service import ClientService

router = APIRouter(prefix="/api/v1", tags=["search"])


@router.get(
    "/search",
    summary="Search clients",
    description="Passes `q` to the search engine verbatim and returns its response untouched.",
)
async def search_clients(
    q: str = Query("", description="Lucene query string"),
    service: ClientService = Depends(get_client_service),
):
    body = await service.search(q)
    return Response(content=body, media_type="application/json")
