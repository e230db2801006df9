"""
elasticsearch_client.py — Elasticsearch search over its REST API (httpx).

    search(index, query) → raw response body (bytes)

The query string is passed through untouched as the Lucene ``q`` parameter
of ``GET /{index}/_search``; an empty query matches everything. Results are
not transformed. Every call is bounded by SEARCH_TIMEOUT.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from backend.app.core.config import Settings
from backend.app.core.errors import SearchBackendError, SearchIndexNotFound

logger = logging.getLogger(__name__)


def _is_missing_index(resp: httpx.Response) -> bool:
    if resp.status_code != 404:
        return False
    try:
        body = resp.json()
    except ValueError:
        return False
    error = body.get("error") if isinstance(body, dict) else None
    return isinstance(error, dict) and error.get("type") == "index_not_found_exception"


class ElasticsearchClient:
    """Search capability backed by an Elasticsearch cluster."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        timeout: float = 5.0,
        connect_timeout: float = 5.0,
    ):
        self._http = http
        self._timeout = timeout
        self._connect_timeout = connect_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElasticsearchClient":
        http = httpx.AsyncClient(
            base_url=settings.ELASTICSEARCH_HOST,
            timeout=settings.SEARCH_TIMEOUT,
            headers={"Accept": "application/json"},
        )
        return cls(
            http,
            timeout=settings.SEARCH_TIMEOUT,
            connect_timeout=settings.CONNECT_TIMEOUT,
        )

    async def connect(self) -> None:
        """Ping the cluster root; raises SearchBackendError if unreachable."""
        try:
            resp = await asyncio.wait_for(self._http.get("/"), self._connect_timeout)
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            raise SearchBackendError(f"Elasticsearch ping failed: {e!r}") from e
        if resp.is_error:
            raise SearchBackendError(f"Elasticsearch ping error: {resp.status_code}")
        logger.info("Elasticsearch connected")

    async def search(self, index: str, query: str) -> bytes:
        params = {"q": query} if query else None
        try:
            resp = await asyncio.wait_for(
                self._http.get(f"/{index}/_search", params=params),
                self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise SearchBackendError(
                f"Elasticsearch search timed out after {self._timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise SearchBackendError(f"Elasticsearch search failed: {e!r}") from e

        if _is_missing_index(resp):
            raise SearchIndexNotFound(index)
        if resp.is_error:
            raise SearchBackendError(
                f"Elasticsearch search error: {resp.status_code} {resp.reason_phrase}"
            )
        return resp.content

    async def close(self) -> None:
        await self._http.aclose()
