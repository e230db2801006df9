"""
service.py — Client Record Service.

Orchestrates one request against the dependency capabilities:

    create(fields)   validate → repository.create → detached notification
    get(id)          repository.get_by_id
    update(id, f)    repository.get_by_id → full replace → repository.update
    search(query)    search.search("clients", query), raw payload passthrough

Dependency exceptions are translated here into the API error taxonomy
(ValidationError, NotFoundError, StorageError, InvalidArgumentError,
SearchError). Storage details are logged, not returned to the caller.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from backend.app.clients.models import REQUIRED_FIELDS, Client, ClientFields
from backend.app.clients.notifier import NotificationDispatcher
from backend.app.core.errors import (
    InvalidArgumentError,
    NotFoundError,
    RecordNotFound,
    RepositoryError,
    SearchBackendError,
    SearchError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CLIENT_CREATED_TOPIC = "client-created"
SEARCH_INDEX = "clients"


def is_valid_email(value: str) -> bool:
    """True for a bare address; the display-name form is not accepted."""
    if "<" in value or ">" in value:
        return False
    try:
        validate_email(value)
    except PydanticCustomError:
        return False
    return True


def validate_client_fields(data: ClientFields) -> None:
    """Raise ValidationError if a required field is empty or the email is malformed."""
    for name in REQUIRED_FIELDS:
        value = getattr(data, name)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            raise ValidationError(f"'{name}' is required", field=name)

    if not is_valid_email(data.email):
        raise ValidationError("'email' is not a valid address", field="email")

    if data.specialist_id < 0:
        raise ValidationError("'specialist_id' must not be negative", field="specialist_id")


class ClientService:

    def __init__(self, repository, search, dispatcher: NotificationDispatcher):
        self._repository = repository
        self._search = search
        self._dispatcher = dispatcher

    async def create(self, data: ClientFields) -> Client:
        validate_client_fields(data)
        record = Client.from_fields(data)

        try:
            record = await self._repository.create(record)
        except RepositoryError as e:
            logger.error("Client create failed: %s", e)
            raise StorageError("Failed to create client") from e

        logger.info("Client created", extra={"client_id": record.id})
        self._dispatcher.dispatch(CLIENT_CREATED_TOPIC, record.email)
        return record

    async def get(self, client_id: Any) -> Client:
        try:
            return await self._repository.get_by_id(client_id)
        except RecordNotFound as e:
            raise NotFoundError("Client", id=str(client_id)) from e
        except RepositoryError as e:
            logger.error("Client %s lookup failed: %s", client_id, e)
            raise StorageError("Failed to get client") from e

    async def update(self, client_id: Any, data: ClientFields) -> Client:
        validate_client_fields(data)
        record = await self.get(client_id)
        record.apply(data)

        try:
            record = await self._repository.update(record)
        except RepositoryError as e:
            logger.error("Client %s update failed: %s", client_id, e)
            raise StorageError("Failed to update client") from e

        logger.info("Client updated", extra={"client_id": record.id})
        return record

    async def search(self, query: str) -> bytes:
        if not query:
            raise InvalidArgumentError("Search query is required", argument="q")
        try:
            return await self._search.search(SEARCH_INDEX, query)
        except SearchBackendError as e:
            logger.error("Search failed: %s", e)
            raise SearchError(f"Search failed: {e}") from e
