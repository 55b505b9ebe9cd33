"""Remote backend: pass-through to an HTTP memory service.

Semantic search, deduplication and the knowledge graph all live on the
server. This side only maps calls to requests and responses back to
``Memory`` records.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import aiohttp

from memory_mcp.backends.base import BackendInfo
from memory_mcp.errors import BackendConnectionError, RemoteRequestError
from memory_mcp.models import (
    DEFAULT_IMPORTANCE,
    DEFAULT_MEMORY_TYPE,
    Memory,
    MemorySearchResult,
    now_iso,
)

logger = logging.getLogger(__name__)

# Logical field -> response keys tried in order
FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id", "memory_id"),
    "content": ("content",),
    "type": ("type", "memory_type"),
    "importance": ("importance",),
    "created_at": ("created_at", "createdAt"),
    "updated_at": ("updated_at", "updatedAt"),
    "metadata": ("metadata",),
}

REMOTE_FEATURES = [
    "semantic-search",
    "deduplication",
    "knowledge-graph",
    "temporal-history",
    "importance-decay",
]


def _pick(data: dict[str, Any], field: str) -> Any:
    for key in FIELD_KEYS[field]:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def to_memory(data: dict[str, Any]) -> Memory:
    """Map a service response object onto a Memory, tolerating key variants."""
    importance = _pick(data, "importance")
    return Memory(
        id=str(_pick(data, "id") or ""),
        content=str(_pick(data, "content") or ""),
        type=_pick(data, "type") or DEFAULT_MEMORY_TYPE,
        importance=DEFAULT_IMPORTANCE if importance is None else importance,
        created_at=_pick(data, "created_at") or now_iso(),
        updated_at=_pick(data, "updated_at") or now_iso(),
        metadata=_pick(data, "metadata"),
    )


def to_results(data: dict[str, Any] | None) -> list[MemorySearchResult]:
    rows = (data or {}).get("results") or []
    return [MemorySearchResult(memory=to_memory(r), score=r.get("score") or 0) for r in rows]


class RemoteBackend:
    """Memory service client over aiohttp."""

    def __init__(self, url: str, api_key: str = "", timeout: int = 30) -> None:
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None
        self._ready = False

    # ── Lifecycle ─────────────────────────────────────────────

    async def initialize(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={"Content-Type": "application/json", "X-API-Key": self.api_key},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        try:
            async with self._request("GET", "/health") as resp:
                data = await resp.json(content_type=None)
        except Exception as e:
            raise BackendConnectionError(
                f"Failed to connect to memory service at {self.url}: {e}"
            ) from e

        if isinstance(data, dict) and data.get("status") == "ok":
            self._ready = True
            logger.debug("Connected to memory service (%s)", data.get("mode") or "standard")
        else:
            logger.warning("Memory service at %s is not healthy: %s", self.url, data)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
        self._ready = False

    def is_ready(self) -> bool:
        return self._ready

    def info(self) -> BackendInfo:
        return BackendInfo("remote", self._ready, list(REMOTE_FEATURES))

    # ── Operations ────────────────────────────────────────────

    async def remember(
        self,
        content: str,
        *,
        type: str | None = None,
        importance: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Memory:
        payload = {
            "content": content,
            "memory_type": type or DEFAULT_MEMORY_TYPE,
            "importance": DEFAULT_IMPORTANCE if importance is None else importance,
            "metadata": metadata,
        }
        async with self._request("POST", "/memory/process", json=payload) as resp:
            data = await self._json_or_raise(resp, "Failed to store memory")
        return to_memory(data)

    async def recall(
        self,
        query: str,
        *,
        limit: int | None = None,
        types: Sequence[str] | None = None,
        min_importance: float | None = None,
    ) -> list[MemorySearchResult]:
        params = {"query": query, "limit": str(5 if limit is None else limit)}
        if types:
            params["types"] = ",".join(types)
        if min_importance is not None:
            params["min_importance"] = str(min_importance)

        async with self._request("GET", "/memory/search", params=params) as resp:
            data = await self._json_or_raise(resp, "Failed to recall memories")
        return to_results(data)

    async def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        types: Sequence[str] | None = None,
        min_score: float | None = None,
        min_importance: float | None = None,
    ) -> list[MemorySearchResult]:
        payload = {
            "query": query,
            "limit": 10 if limit is None else limit,
            "types": list(types) if types else None,
            "min_score": min_score,
            "min_importance": min_importance,
        }
        async with self._request("POST", "/memory/search", json=payload) as resp:
            data = await self._json_or_raise(resp, "Search failed")
        return to_results(data)

    async def forget(self, memory_id: str, *, reason: str | None = None) -> bool:
        async with self._request("DELETE", f"/memory/{memory_id}", json={"reason": reason}) as resp:
            return resp.ok

    async def get(self, memory_id: str) -> Memory | None:
        async with self._request("GET", f"/memory/{memory_id}") as resp:
            if resp.status == 404:
                return None
            data = await self._json_or_raise(resp, "Failed to get memory")
        return to_memory(data)

    async def list(self, limit: int = 20, offset: int = 0) -> list[Memory]:
        params = {"limit": str(limit), "offset": str(offset)}
        async with self._request("GET", "/memory", params=params) as resp:
            data = await self._json_or_raise(resp, "Failed to list memories")
        return [to_memory(m) for m in (data or {}).get("memories") or []]

    # ── HTTP helpers ──────────────────────────────────────────

    def _request(self, method: str, path: str, **kwargs: Any):
        if self._session is None:
            raise RuntimeError("RemoteBackend used before initialize()")
        logger.debug("%s %s", method, path)
        return self._session.request(method, f"{self.url}{path}", **kwargs)

    @staticmethod
    async def _json_or_raise(resp: aiohttp.ClientResponse, action: str) -> Any:
        if not resp.ok:
            body = await resp.text()
            raise RemoteRequestError(f"{action}: {body}", status=resp.status)
        return await resp.json(content_type=None)
