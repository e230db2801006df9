"""
models.py — Client record entity and its mutable field set.

Defines:
    • Client        — ORM row in the ``clients`` table
    • ClientFields  — every field a caller may set (create) or replace (update)
    • REQUIRED_FIELDS — fields that must be non-empty / non-zero

A client record is created once and never deleted. Update replaces every
mutable field, so optional fields omitted from an update are cleared.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ClientFields:
    """Caller-supplied client attributes (everything except identity)."""
    full_name: str = ""
    phone: str = ""
    email: str = ""
    advertising_channel: str = ""
    specialist_id: int = 0          # 0 = no specialist assigned
    meeting_place: str = ""
    occupation: str = ""
    gender: str = ""
    age: int = 0
    reason_for_visit: str = ""
    specialist_notes: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


MUTABLE_FIELDS = tuple(f.name for f in fields(ClientFields))

REQUIRED_FIELDS = (
    "full_name",
    "phone",
    "email",
    "meeting_place",
    "occupation",
    "gender",
    "age",
    "reason_for_visit",
)


class Client(Base):
    """A wellness-center client."""

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), default="")
    phone: Mapped[str] = mapped_column(String(64), default="")
    email: Mapped[str] = mapped_column(String(320), default="", index=True)
    advertising_channel: Mapped[str] = mapped_column(String(255), default="")
    specialist_id: Mapped[int] = mapped_column(Integer, default=0)
    meeting_place: Mapped[str] = mapped_column(String(255), default="")
    occupation: Mapped[str] = mapped_column(String(255), default="")
    gender: Mapped[str] = mapped_column(String(32), default="")
    age: Mapped[int] = mapped_column(Integer, default=0)
    reason_for_visit: Mapped[str] = mapped_column(Text, default="")
    specialist_notes: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    @classmethod
    def from_fields(cls, data: ClientFields) -> "Client":
        return cls(**data.as_dict())

    def apply(self, data: ClientFields) -> None:
        """Overwrite every mutable field (full replace, no merge)."""
        for name in MUTABLE_FIELDS:
            setattr(self, name, getattr(data, name))

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"id": self.id}
        for name in MUTABLE_FIELDS:
            d[name] = getattr(self, name)
        d["created_at"] = self.created_at.isoformat() if self.created_at else None
        d["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return d

    def __repr__(self) -> str:
        return f"Client(id={self.id!r}, email={self.email!r})"
