"""Backend protocol and shared types."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from memory_mcp.models import Memory, MemorySearchResult


@dataclass
class BackendInfo:
    """Static capability descriptor, for display only."""

    backend_type: str
    connected: bool
    features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "backendType": self.backend_type,
            "connected": self.connected,
            "supportedFeatures": list(self.features),
        }


@runtime_checkable
class MemoryBackend(Protocol):
    """Protocol that both storage backends implement.

    ``initialize()`` must complete before any other call is valid.
    """

    async def initialize(self) -> None:
        """Load state or verify connectivity."""
        ...

    async def remember(
        self,
        content: str,
        *,
        type: str | None = None,
        importance: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Memory:
        """Store a new memory and return it with its generated id."""
        ...

    async def recall(
        self,
        query: str,
        *,
        limit: int | None = None,
        types: Sequence[str] | None = None,
        min_importance: float | None = None,
    ) -> list[MemorySearchResult]:
        """Relevance search, best match first."""
        ...

    async def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        types: Sequence[str] | None = None,
        min_score: float | None = None,
        min_importance: float | None = None,
    ) -> list[MemorySearchResult]:
        """Like recall, with an extra score floor."""
        ...

    async def forget(self, memory_id: str, *, reason: str | None = None) -> bool:
        """Delete a memory. Returns False if no memory had that id."""
        ...

    async def get(self, memory_id: str) -> Memory | None: ...

    async def list(self, limit: int = 20, offset: int = 0) -> list[Memory]:
        """Most recently updated first."""
        ...

    async def close(self) -> None: ...

    def is_ready(self) -> bool: ...

    def info(self) -> BackendInfo: ...
