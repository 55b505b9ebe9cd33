"""Local backend: JSON file on disk, keyword search in process.

Limited compared to the remote service: keyword matching only, no
deduplication, no knowledge graph. The whole record set is rewritten on
every mutation.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from memory_mcp.backends.base import BackendInfo
from memory_mcp.config import DEFAULT_STORAGE_PATH
from memory_mcp.errors import StorageError
from memory_mcp.models import Memory, MemorySearchResult
from memory_mcp.search import rank_memories

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class LocalBackend:
    """File-persisted list of memories with keyword ranking."""

    def __init__(self, storage_path: Path | None = None) -> None:
        self.storage_path = Path(storage_path) if storage_path else DEFAULT_STORAGE_PATH
        self._memories: list[Memory] = []
        self._ready = False

    # ── Lifecycle ─────────────────────────────────────────────

    async def initialize(self) -> None:
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {self.storage_path.parent}: {e}") from e
        self._memories = self._load()
        self._ready = True
        logger.debug("Local backend initialized (%s)", self.storage_path)

    async def close(self) -> None:
        return None

    def is_ready(self) -> bool:
        return self._ready

    def info(self) -> BackendInfo:
        return BackendInfo("local", self._ready, ["keyword-search", "persistence"])

    # ── Operations ────────────────────────────────────────────

    async def remember(
        self,
        content: str,
        *,
        type: str | None = None,
        importance: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Memory:
        memory = Memory.create(content, type=type, importance=importance, metadata=metadata)
        self._memories.append(memory)
        try:
            self._save()
        except StorageError:
            self._memories.pop()
            raise
        logger.debug("Stored memory: %s", memory.id)
        return memory

    async def recall(
        self,
        query: str,
        *,
        limit: int | None = None,
        types: Sequence[str] | None = None,
        min_importance: float | None = None,
    ) -> list[MemorySearchResult]:
        return rank_memories(
            self._memories, query, limit=limit, types=types, min_importance=min_importance
        )

    async def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        types: Sequence[str] | None = None,
        min_score: float | None = None,
        min_importance: float | None = None,
    ) -> list[MemorySearchResult]:
        return rank_memories(
            self._memories,
            query,
            limit=limit,
            types=types,
            min_score=min_score,
            min_importance=min_importance,
        )

    async def forget(self, memory_id: str, *, reason: str | None = None) -> bool:
        index = next((i for i, m in enumerate(self._memories) if m.id == memory_id), None)
        if index is None:
            return False

        removed = self._memories.pop(index)
        try:
            self._save()
        except StorageError:
            self._memories.insert(index, removed)
            raise
        logger.debug("Deleted memory: %s (reason: %s)", memory_id, reason or "-")
        return True

    async def get(self, memory_id: str) -> Memory | None:
        return next((m for m in self._memories if m.id == memory_id), None)

    async def list(self, limit: int = 20, offset: int = 0) -> list[Memory]:
        ordered = sorted(self._memories, key=lambda m: m.updated_at, reverse=True)
        return ordered[offset : offset + limit]

    # ── Persistence ───────────────────────────────────────────

    def _load(self) -> list[Memory]:
        """Read the store file. A missing or unreadable file is an empty store."""
        if not self.storage_path.exists():
            return []
        try:
            data = json.loads(self.storage_path.read_text(encoding="utf-8"))
            memories = [Memory.from_dict(r) for r in data.get("records") or []]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Failed to load memories from %s: %s", self.storage_path, e)
            return []
        logger.debug("Loaded %d memories from %s", len(memories), self.storage_path)
        return memories

    def _save(self) -> None:
        """Rewrite the whole store via temp file + rename."""
        data = {
            "records": [m.to_dict() for m in self._memories],
            "formatVersion": FORMAT_VERSION,
        }
        tmp = self.storage_path.with_name(self.storage_path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.storage_path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.storage_path}: {e}") from e
