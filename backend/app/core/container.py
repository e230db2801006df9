"""
Dependency container — one live adapter per external dependency.

Startup order mirrors what the service needs first:
    Redis → Kafka (one retry, may degrade) → Elasticsearch → PostgreSQL

Alternate adapters (fakes, null objects) can be injected by building
Dependencies directly; the HTTP layer only sees the capabilities.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from backend.app.clients.notifier import NotificationDispatcher
from backend.app.clients.repository import ClientRepository
from backend.app.clients.service import ClientService
from backend.app.core.cache import RedisCache
from backend.app.core.config import Settings
from backend.app.core.health import HealthReporter
from backend.app.messaging.kafka_producer import connect_producer
from backend.app.search.elasticsearch_client import ElasticsearchClient

logger = logging.getLogger(__name__)


@dataclass
class Dependencies:
    cache: object
    queue: object
    search: object
    repository: object
    health_timeout: float = 5.0
    dispatcher: NotificationDispatcher = field(init=False)
    clients: ClientService = field(init=False)
    health: HealthReporter = field(init=False)

    def __post_init__(self) -> None:
        self.dispatcher = NotificationDispatcher(self.queue)
        self.clients = ClientService(self.repository, self.search, self.dispatcher)
        self.health = HealthReporter.for_dependencies(
            cache=self.cache,
            queue=self.queue,
            search=self.search,
            repository=self.repository,
            timeout=self.health_timeout,
        )

    async def close(self, drain_timeout: float = 5.0) -> None:
        """Drain notifications, then close every adapter; errors are logged."""
        await self.dispatcher.drain(drain_timeout)
        for name in ("queue", "cache", "search", "repository"):
            adapter = getattr(self, name)
            try:
                await adapter.close()
            except Exception as e:
                logger.error("Error closing %s: %s", name, e)


async def build_dependencies(settings: Settings) -> Dependencies:
    """Connect to every dependency; raises on a fatal startup failure."""
    opened = []
    try:
        cache = RedisCache.from_settings(settings)
        opened.append(cache)
        await cache.connect()

        queue = await connect_producer(settings)
        opened.append(queue)

        search = ElasticsearchClient.from_settings(settings)
        opened.append(search)
        await search.connect()

        repository = ClientRepository.from_settings(settings)
        opened.append(repository)
        await repository.init_schema()
    except Exception:
        for adapter in reversed(opened):
            try:
                await adapter.close()
            except Exception as e:
                logger.debug("Error closing %s during startup: %s", type(adapter).__name__, e)
        raise

    return Dependencies(
        cache=cache,
        queue=queue,
        search=search,
        repository=repository,
        health_timeout=settings.HEALTH_CHECK_TIMEOUT,
    )
