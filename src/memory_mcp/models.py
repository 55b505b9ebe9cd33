"""Memory record and search result types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, get_args

MemoryType = Literal["fact", "preference", "task", "event", "context", "reflection"]

MEMORY_TYPES: tuple[str, ...] = get_args(MemoryType)

DEFAULT_MEMORY_TYPE = "fact"
DEFAULT_IMPORTANCE = 0.5


def now_iso() -> str:
    """UTC timestamp like ``2026-02-18T09:30:00.123Z``. Sorts lexically."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Memory:
    """One stored fact, preference, task, etc."""

    id: str
    content: str
    type: MemoryType = DEFAULT_MEMORY_TYPE
    importance: float = DEFAULT_IMPORTANCE
    created_at: str = ""
    updated_at: str = ""
    metadata: dict[str, Any] | None = None

    @classmethod
    def create(
        cls,
        content: str,
        type: str | None = None,
        importance: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Memory:
        """Build a fresh record with a generated id and timestamps."""
        ts = now_iso()
        return cls(
            id=str(uuid.uuid4()),
            content=content,
            type=type or DEFAULT_MEMORY_TYPE,
            importance=DEFAULT_IMPORTANCE if importance is None else importance,
            created_at=ts,
            updated_at=ts,
            metadata=metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted (camelCase) shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "type": self.type,
            "importance": self.importance,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Memory:
        return cls(
            id=data["id"],
            content=data["content"],
            type=data.get("type", DEFAULT_MEMORY_TYPE),
            importance=data.get("importance", DEFAULT_IMPORTANCE),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            metadata=data.get("metadata"),
        )


@dataclass
class MemorySearchResult:
    """A memory paired with its relevance score (>= 0, not bounded to 1)."""

    memory: Memory
    score: float
