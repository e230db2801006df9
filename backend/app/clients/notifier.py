"""
notifier.py — Fire-and-forget notifications to the message queue.

A notification is handed to a detached asyncio task:
    • the caller never awaits it, so the response is not delayed
    • it is not tied to the request task, so a cancelled request does not
      cancel it
    • its outcome is only logged: at-most-once, no retry

The dispatcher keeps a strong reference to every in-flight task until it
completes, and drain() gives them a bounded window at shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Set

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Schedules queue sends without awaiting them."""

    def __init__(self, producer):
        self._producer = producer
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, topic: str, message: str) -> asyncio.Task:
        """Start delivery in the background and return immediately."""
        task = asyncio.get_running_loop().create_task(
            self._deliver(topic, message), name=f"notify:{topic}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, topic: str, message: str) -> bool:
        try:
            await self._producer.send(topic, message)
        except Exception as e:
            logger.warning(
                "Failed to send %s notification: %s", topic, e,
                extra={"topic": topic},
            )
            return False
        logger.debug("Sent %s notification", topic, extra={"topic": topic})
        return True

    async def drain(self, timeout: float) -> None:
        """Wait up to ``timeout`` seconds for in-flight sends, then cancel."""
        if not self._tasks:
            return
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Dropping %d undelivered notifications", len(pending))
            for task in pending:
                task.cancel()
