"""MCP tools for agent memory access.

Tool schemas are published via ``tools/list``; the handlers returned by
``get_memory_tools`` take the call's ``arguments`` dict and return the text
shown to the assistant. Bad arguments raise ``ToolInputError``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from memory_mcp.errors import ToolInputError
from memory_mcp.models import MEMORY_TYPES

if TYPE_CHECKING:
    from memory_mcp.backends.base import MemoryBackend

ToolHandler = Callable[[dict[str, Any]], Awaitable[str]]

LIST_PREVIEW_CHARS = 100

TOOLS: list[dict[str, Any]] = [
    {
        "name": "remember",
        "description": (
            "Store a memory for later recall. Use this to remember important facts, "
            "user preferences, decisions, or any information that should persist "
            "across conversations."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "The information to remember"},
                "type": {
                    "type": "string",
                    "enum": list(MEMORY_TYPES),
                    "description": (
                        "Type of memory: fact (default), preference, task, event, "
                        "context, or reflection"
                    ),
                },
                "importance": {
                    "type": "number",
                    "description": (
                        "Importance from 0.0 to 1.0 (default: 0.5). Higher importance "
                        "memories are prioritized in recall."
                    ),
                    "minimum": 0,
                    "maximum": 1,
                },
            },
            "required": ["content"],
        },
    },
    {
        "name": "recall",
        "description": (
            "Search memories by relevance. Returns the most relevant memories "
            "matching the query."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "What to search for in memories"},
                "limit": {
                    "type": "number",
                    "description": "Maximum number of memories to return (default: 5)",
                    "minimum": 1,
                    "maximum": 20,
                },
                "types": {
                    "type": "array",
                    "items": {"type": "string", "enum": list(MEMORY_TYPES)},
                    "description": "Filter by memory types",
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "forget",
        "description": (
            "Delete a specific memory by ID. Use when information is outdated or incorrect."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "memoryId": {"type": "string", "description": "ID of the memory to delete"},
                "reason": {
                    "type": "string",
                    "description": "Reason for deletion (for audit trail)",
                },
            },
            "required": ["memoryId"],
        },
    },
    {
        "name": "list_memories",
        "description": "List recent memories. Useful for reviewing what has been remembered.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Maximum number of memories to return (default: 10)",
                    "minimum": 1,
                    "maximum": 50,
                },
            },
        },
    },
    {
        "name": "memory_status",
        "description": (
            "Get status of the memory system including backend type and features available."
        ),
        "inputSchema": {"type": "object", "properties": {}},
    },
]


def _dump(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def relevance(score: float) -> str:
    """Score as a whole percentage, halves rounded up (0.125 -> '13%')."""
    return f"{math.floor(score * 100 + 0.5)}%"


def preview(content: str, limit: int = LIST_PREVIEW_CHARS) -> str:
    return content[:limit] + "..." if len(content) > limit else content


def _optional_int(args: dict[str, Any], name: str, default: int) -> int:
    value = args.get(name)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolInputError(f"{name} must be a number")
    return int(value)


def get_memory_tools(
    backend: MemoryBackend,
    *,
    default_type: str = "fact",
    default_importance: float = 0.5,
) -> dict[str, ToolHandler]:
    """Return a dict of tool_name -> async handler bound to ``backend``."""

    async def remember(args: dict[str, Any]) -> str:
        """Store one memory."""
        content = args.get("content")
        if not content or not isinstance(content, str):
            raise ToolInputError("content is required")

        memory_type = args.get("type") or default_type
        if memory_type not in MEMORY_TYPES:
            raise ToolInputError(
                f"type must be one of: {', '.join(MEMORY_TYPES)} (got {memory_type!r})"
            )

        importance = args.get("importance")
        if importance is None:
            importance = default_importance
        elif isinstance(importance, bool) or not isinstance(importance, (int, float)):
            raise ToolInputError("importance must be a number")
        elif not 0 <= importance <= 1:
            raise ToolInputError(f"importance must be between 0 and 1 (got {importance})")

        memory = await backend.remember(content, type=memory_type, importance=importance)
        return _dump(
            {
                "success": True,
                "message": "Memory stored successfully",
                "memory": {
                    "id": memory.id,
                    "content": memory.content,
                    "type": memory.type,
                    "importance": memory.importance,
                },
            }
        )

    async def recall(args: dict[str, Any]) -> str:
        """Relevance search with optional type filter."""
        query = args.get("query")
        if not query or not isinstance(query, str):
            raise ToolInputError("query is required")

        types = args.get("types")
        if types is not None and not isinstance(types, list):
            raise ToolInputError("types must be an array")

        results = await backend.recall(
            query, limit=_optional_int(args, "limit", 5), types=types or None
        )
        if not results:
            return "No relevant memories found."

        return _dump(
            {
                "query": query,
                "count": len(results),
                "memories": [
                    {
                        "id": r.memory.id,
                        "content": r.memory.content,
                        "type": r.memory.type,
                        "importance": r.memory.importance,
                        "relevance": relevance(r.score),
                        "createdAt": r.memory.created_at,
                    }
                    for r in results
                ],
            }
        )

    async def forget(args: dict[str, Any]) -> str:
        memory_id = args.get("memoryId")
        if not memory_id or not isinstance(memory_id, str):
            raise ToolInputError("memoryId is required")

        removed = await backend.forget(memory_id, reason=args.get("reason"))
        if removed:
            return f"Memory {memory_id} deleted successfully."
        return f"Memory {memory_id} not found."

    async def list_memories(args: dict[str, Any]) -> str:
        memories = await backend.list(_optional_int(args, "limit", 10))
        if not memories:
            return "No memories stored yet."

        return _dump(
            {
                "count": len(memories),
                "memories": [
                    {
                        "id": m.id,
                        "content": preview(m.content),
                        "type": m.type,
                        "importance": m.importance,
                        "createdAt": m.created_at,
                    }
                    for m in memories
                ],
            }
        )

    async def memory_status(args: dict[str, Any]) -> str:
        info = backend.info()
        if info.backend_type == "local":
            note = "Using local storage. Set MEMORY_MCP_URL for full semantic search capabilities."
        else:
            note = "Connected to the remote memory service with full semantic search."
        return _dump(
            {
                "backend": info.backend_type,
                "connected": info.connected,
                "features": info.features,
                "note": note,
            }
        )

    return {
        "remember": remember,
        "recall": recall,
        "forget": forget,
        "list_memories": list_memories,
        "memory_status": memory_status,
    }
