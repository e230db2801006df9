"""
Pydantic schemas for the client API.

Separated from the route handlers so they are reusable across the
codebase (services, tests).
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.clients.models import ClientFields
from backend.app.clients.service import is_valid_email


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ClientRequest(BaseModel):
    """Body for POST /api/v1/clients and PUT /api/v1/clients/{id}.

    PUT is a full replacement: optional fields left out are cleared.
    """
    full_name: str = Field(..., min_length=1, examples=["Anna Petrova"])
    phone: str = Field(..., min_length=1, examples=["+79161234567"])
    email: str = Field(..., min_length=1, examples=["anna.petrova@mail.com"])
    advertising_channel: str = Field("", examples=["instagram"])
    specialist_id: int = Field(0, ge=0, description="0 = not assigned")
    meeting_place: str = Field(..., min_length=1, examples=["Main office"])
    occupation: str = Field(..., min_length=1, examples=["Teacher"])
    gender: str = Field(..., min_length=1, examples=["female"])
    age: int = Field(..., examples=[34])
    reason_for_visit: str = Field(..., min_length=1, examples=["Back pain"])
    specialist_notes: str = Field("", examples=[""])

    @field_validator("email")
    @classmethod
    def _email_address(cls, v: str) -> str:
        # Stored exactly as sent; no case or unicode normalisation.
        if not is_valid_email(v):
            raise ValueError("not a valid email address")
        return v

    @field_validator("age")
    @classmethod
    def _age_present(cls, v: int) -> int:
        if v == 0:
            raise ValueError("age is required")
        return v

    def to_fields(self) -> ClientFields:
        return ClientFields(**self.model_dump())


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ClientOut(BaseModel):
    """A persisted client record."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    phone: str
    email: str
    advertising_channel: str
    specialist_id: int
    meeting_place: str
    occupation: str
    gender: str
    age: int
    reason_for_visit: str
    specialist_notes: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _isoformat(cls, v):
        return v.isoformat() if hasattr(v, "isoformat") else v


class ClientEnvelope(BaseModel):
    """Response for create / update."""
    message: str
    client: ClientOut


class HealthResponse(BaseModel):
    status: str
    details: Dict[str, str]
    latency_ms: Dict[str, float] = {}
    timestamp: str = ""
