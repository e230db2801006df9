"""
Health check aggregation — composite readiness across external dependencies.

Probes:
    • cache   — read the sentinel key (a miss still proves connectivity)
    • queue   — send a ping to the sentinel topic
    • search  — empty query against the sentinel index (a missing index
                still proves connectivity)
    • storage — read the sentinel identity ("not found" proves connectivity)

All probes run concurrently under one shared deadline. A probe that raises
or overruns the deadline marks its dependency unavailable; the check itself
never fails. Overall status is ``ok`` only when every dependency is
available, otherwise ``degraded``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Sequence

from backend.app.core.errors import CacheMiss, RecordNotFound, SearchIndexNotFound

logger = logging.getLogger(__name__)

HEALTHCHECK_SENTINEL = "healthcheck"
PING_MESSAGE = "ping"


class DependencyState(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class OverallStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    name: str
    state: DependencyState = DependencyState.AVAILABLE
    latency_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "latency_ms": round(self.latency_ms, 2),
        }


@dataclass
class HealthReport:
    status: OverallStatus = OverallStatus.OK
    timestamp: str = ""
    components: List[ComponentHealth] = field(default_factory=list)

    @property
    def is_ok(self) -> bool:
        return self.status is OverallStatus.OK

    @property
    def details(self) -> Dict[str, str]:
        return {c.name: c.state.value for c in self.components}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "details": self.details,
            "latency_ms": {c.name: round(c.latency_ms, 2) for c in self.components},
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# Probes
# ═══════════════════════════════════════════════════════════════════════════

class DependencyProbe:
    """Minimal read / no-op against one dependency."""

    name = "dependency"

    async def check(self) -> None:
        """Return normally if the dependency answered; raise otherwise."""
        raise NotImplementedError

    async def probe(self) -> DependencyState:
        try:
            await self.check()
        except Exception as e:
            logger.warning(
                "Health probe %s failed: %s", self.name, e,
                extra={"dependency": self.name},
            )
            return DependencyState.UNAVAILABLE
        return DependencyState.AVAILABLE


class CacheProbe(DependencyProbe):
    name = "cache"

    def __init__(self, cache):
        self._cache = cache

    async def check(self) -> None:
        try:
            await self._cache.get(HEALTHCHECK_SENTINEL)
        except CacheMiss:
            pass


class QueueProbe(DependencyProbe):
    name = "queue"

    def __init__(self, producer):
        self._producer = producer

    async def check(self) -> None:
        await self._producer.send(HEALTHCHECK_SENTINEL, PING_MESSAGE)


class SearchProbe(DependencyProbe):
    name = "search"

    def __init__(self, search):
        self._search = search

    async def check(self) -> None:
        try:
            await self._search.search(HEALTHCHECK_SENTINEL, "")
        except SearchIndexNotFound:
            pass


class StorageProbe(DependencyProbe):
    name = "storage"

    def __init__(self, repository):
        self._repository = repository

    async def check(self) -> None:
        try:
            await self._repository.get_by_id(HEALTHCHECK_SENTINEL)
        except RecordNotFound:
            pass


# ═══════════════════════════════════════════════════════════════════════════
# Reporter
# ═══════════════════════════════════════════════════════════════════════════

class HealthReporter:
    """Runs every probe and reduces the results to one status."""

    def __init__(self, probes: Sequence[DependencyProbe], *, timeout: float = 5.0):
        self._probes = list(probes)
        self._timeout = timeout

    @classmethod
    def for_dependencies(
        cls, *, cache, queue, search, repository, timeout: float = 5.0,
    ) -> "HealthReporter":
        return cls(
            [
                CacheProbe(cache),
                QueueProbe(queue),
                SearchProbe(search),
                StorageProbe(repository),
            ],
            timeout=timeout,
        )

    async def check_health(self) -> HealthReport:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout

        components = await asyncio.gather(
            *(self._run_probe(p, deadline) for p in self._probes)
        )

        report = HealthReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            components=list(components),
        )
        if all(c.state is DependencyState.AVAILABLE for c in components):
            report.status = OverallStatus.OK
        else:
            report.status = OverallStatus.DEGRADED
        return report

    async def _run_probe(self, probe: DependencyProbe, deadline: float) -> ComponentHealth:
        comp = ComponentHealth(name=probe.name)
        start = time.monotonic()
        remaining = max(0.0, deadline - asyncio.get_running_loop().time())
        try:
            comp.state = await asyncio.wait_for(probe.probe(), remaining)
        except asyncio.TimeoutError:
            logger.warning(
                "Health probe %s exceeded %.1fs deadline", probe.name, self._timeout,
                extra={"dependency": probe.name},
            )
            comp.state = DependencyState.UNAVAILABLE
        comp.latency_ms = (time.monotonic() - start) * 1000
        return comp
