"""
FastAPI routes: client records.

    POST /api/v1/clients        — create (201)
    GET  /api/v1/clients/{id}   — fetch
    PUT  /api/v1/clients/{id}   — full replacement
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_client_service
from backend.app.api.schemas import ClientEnvelope, ClientOut, ClientRequest
from backend.app.clients.service import ClientService

router = APIRouter(prefix="/api/v1/clients", tags=["clients"])


@router.post(
    "",
    status_code=201,
    response_model=ClientEnvelope,
    summary="Create a client",
    description=(
        "Validates and stores a client record. A 'client-created' "
        "notification is sent in the background; its failure does not "
        "affect the response."
    ),
)
async def create_client(
    request: ClientRequest,
    service: ClientService = Depends(get_client_service),
):
    client = await service.create(request.to_fields())
    return ClientEnvelope(
        message="Client created successfully",
        client=ClientOut.model_validate(client),
    )


@router.get(
    "/{client_id}",
    response_model=ClientOut,
    summary="Get a client",
)
async def get_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    client = await service.get(client_id)
    return ClientOut.model_validate(client)


@router.put(
    "/{client_id}",
    response_model=ClientEnvelope,
    summary="Replace a client",
    description="Overwrites every mutable field; omitted optional fields are cleared.",
)
async def update_client(
    client_id: str,
    request: ClientRequest,
    service: ClientService = Depends(get_client_service),
):
    client = await service.update(client_id, request.to_fields())
    return ClientEnvelope(
        message="Client updated successfully",
        client=ClientOut.model_validate(client),
    )
