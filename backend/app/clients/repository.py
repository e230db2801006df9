"""
repository.py — PostgreSQL persistence for client records.

Capability:
    create(record)        → assigns record.id
    get_by_id(id)         → Client, or RecordNotFound
    update(record)        → persisted Client

Each call runs in its own session and is bounded by DATABASE_TIMEOUT
independently of the caller's cancellation. Backend failures surface as
RepositoryError with context; RecordNotFound is never wrapped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from sqlalchemy import false, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from backend.app.clients.models import Client
from backend.app.core.config import Settings
from backend.app.core.database import (
    build_engine,
    build_session_factory,
    close_db,
    init_db,
)
from backend.app.core.errors import RecordNotFound, RepositoryError

logger = logging.getLogger(__name__)


# Range of the INTEGER identity column (PostgreSQL SERIAL)
MAX_CLIENT_ID = 2**31 - 1


def _parse_id(record_id: Any) -> Optional[int]:
    """Client ids are positive 32-bit integers; anything else cannot match a row."""
    try:
        value = int(record_id)
    except (TypeError, ValueError):
        return None
    if not 1 <= value <= MAX_CLIENT_ID:
        return None
    return value


class ClientRepository:
    """Storage capability over an async SQLAlchemy engine."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        timeout: float = 5.0,
        sessions: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        self._engine = engine
        self._sessions = sessions or build_session_factory(engine)
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientRepository":
        return cls(build_engine(settings), timeout=settings.DATABASE_TIMEOUT)

    async def init_schema(self) -> None:
        try:
            await asyncio.wait_for(init_db(self._engine), self._timeout)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            raise RepositoryError(f"failed to initialise database: {e}") from e

    async def create(self, record: Client) -> Client:
        async def _create() -> Client:
            async with self._sessions() as session:
                session.add(record)
                await session.commit()
            return record

        return await self._run("create client", _create())

    async def get_by_id(self, record_id: Any) -> Client:
        client_id = _parse_id(record_id)

        async def _get() -> Optional[Client]:
            # A non-integer id still issues the query so the lookup
            # exercises the connection.
            condition = Client.id == client_id if client_id is not None else false()
            async with self._sessions() as session:
                result = await session.execute(select(Client).where(condition))
                return result.scalar_one_or_none()

        client = await self._run("get client", _get())
        if client is None:
            raise RecordNotFound(record_id)
        return client

    async def update(self, record: Client) -> Client:
        async def _update() -> Client:
            async with self._sessions() as session:
                merged = await session.merge(record)
                await session.commit()
            return merged

        return await self._run("update client", _update())

    async def close(self) -> None:
        await close_db(self._engine)

    async def _run(self, action: str, coro):
        try:
            return await asyncio.wait_for(coro, self._timeout)
        except asyncio.TimeoutError as e:
            raise RepositoryError(
                f"failed to {action}: timed out after {self._timeout}s"
            ) from e
        except (SQLAlchemyError, OSError) as e:
            raise RepositoryError(f"failed to {action}: {e}") from e
