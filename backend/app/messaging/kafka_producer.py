"""
kafka_producer.py — Kafka producer behind a narrow send(topic, message) capability.

Startup policy (connect_producer):
    1. Optionally wait KAFKA_STARTUP_DELAY seconds for the broker
    2. Connect; on failure wait KAFKA_RETRY_DELAY and retry exactly once
    3. If the retry fails too:
         KAFKA_REQUIRED=true  → raise QueueError (startup aborts)
         otherwise            → UnavailableProducer (service runs degraded;
                                every send fails and is reported as such)

Each send is bounded by QUEUE_TIMEOUT regardless of the caller's own
cancellation. Messages are UTF-8 encoded strings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from backend.app.core.config import Settings
from backend.app.core.errors import QueueError

logger = logging.getLogger(__name__)


class KafkaProducer:
    """Queue capability backed by aiokafka."""

    def __init__(
        self,
        producer: AIOKafkaProducer,
        *,
        timeout: float = 5.0,
        connect_timeout: float = 5.0,
    ):
        self._producer = producer
        self._timeout = timeout
        self._connect_timeout = connect_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "KafkaProducer":
        # AIOKafkaProducer binds to the running loop; call from a coroutine.
        producer = AIOKafkaProducer(
            bootstrap_servers=settings.KAFKA_BROKER.split(","),
            acks=1,
            linger_ms=0,
        )
        return cls(
            producer,
            timeout=settings.QUEUE_TIMEOUT,
            connect_timeout=settings.CONNECT_TIMEOUT,
        )

    async def connect(self) -> None:
        try:
            await asyncio.wait_for(self._producer.start(), self._connect_timeout)
        except (KafkaError, OSError, asyncio.TimeoutError) as e:
            raise QueueError(f"failed to connect to Kafka: {e!r}") from e
        logger.info("Kafka producer connected")

    async def send(self, topic: str, message: str) -> None:
        """Publish and wait for the broker ack."""
        try:
            await asyncio.wait_for(
                self._producer.send_and_wait(topic, message.encode("utf-8")),
                self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise QueueError(f"send to '{topic}' timed out after {self._timeout}s") from e
        except (KafkaError, OSError) as e:
            raise QueueError(f"send to '{topic}' failed: {e!r}") from e

    async def close(self) -> None:
        await self._producer.stop()
        logger.info("Kafka producer closed")


class UnavailableProducer:
    """Stand-in used when the broker could not be reached at startup."""

    def __init__(self, reason: str):
        self.reason = reason

    async def send(self, topic: str, message: str) -> None:
        raise QueueError(f"queue producer unavailable: {self.reason}")

    async def close(self) -> None:
        return None


async def _discard(producer) -> None:
    """Stop a producer whose start failed so its sockets and tasks are released."""
    try:
        await producer.close()
    except Exception as e:
        logger.debug("Error stopping failed Kafka producer: %s", e)


async def connect_producer(
    settings: Settings,
    *,
    factory: Callable[[Settings], KafkaProducer] = KafkaProducer.from_settings,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
):
    """Connect with one retry; see module docstring for the failure policy."""
    if settings.KAFKA_STARTUP_DELAY > 0:
        logger.info("Waiting %.0fs for Kafka to start", settings.KAFKA_STARTUP_DELAY)
        await sleep(settings.KAFKA_STARTUP_DELAY)

    producer = factory(settings)
    try:
        await producer.connect()
        return producer
    except QueueError as e:
        await _discard(producer)
        logger.warning(
            "Kafka connection failed (retrying in %.0fs): %s",
            settings.KAFKA_RETRY_DELAY, e,
        )

    await sleep(settings.KAFKA_RETRY_DELAY)

    # A stopped aiokafka producer cannot be restarted; build a fresh one.
    producer = factory(settings)
    try:
        await producer.connect()
        return producer
    except QueueError as e:
        await _discard(producer)
        if settings.KAFKA_REQUIRED:
            raise
        logger.error("Kafka unavailable, notifications disabled: %s", e)
        return UnavailableProducer(str(e))
