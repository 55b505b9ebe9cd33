"""MCP server: memory tools over JSON-RPC 2.0 on stdio (NDJSON).

One request per line on stdin, one response per line on stdout. Requests
are handled one at a time, so backends never see concurrent calls.
Logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from memory_mcp import __version__
from memory_mcp.errors import ToolInputError
from memory_mcp.tools import TOOLS, get_memory_tools

if TYPE_CHECKING:
    from memory_mcp.backends.base import MemoryBackend

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────

SERVER_NAME = "memory-mcp"
PROTOCOL_VERSION = "2024-11-05"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Longest request line accepted on stdin
STREAM_LIMIT = 16 * 1024 * 1024

# ── JSON-RPC 2.0 helpers ─────────────────────────────────────


def jsonrpc_result(req_id, result):
    return {"jsonrpc": "2.0", "id": req_id, "result": result}


def jsonrpc_error(req_id, code, message):
    return {"jsonrpc": "2.0", "id": req_id, "error": {"code": code, "message": message}}


def text_result(text: str, *, is_error: bool = False) -> dict[str, Any]:
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


# ── Server ───────────────────────────────────────────────────


class MemoryServer:
    """Routes MCP requests to the memory tools of one backend."""

    def __init__(
        self,
        backend: MemoryBackend,
        *,
        default_type: str = "fact",
        default_importance: float = 0.5,
    ) -> None:
        self.backend = backend
        self._tools = get_memory_tools(
            backend, default_type=default_type, default_importance=default_importance
        )

    async def call_tool(self, name: str, args: dict[str, Any] | None) -> dict[str, Any]:
        """Run one tool. Every failure becomes an isError result."""
        handler = self._tools.get(name)
        if handler is None:
            return text_result(f"Unknown tool: {name}", is_error=True)

        try:
            text = await handler(args or {})
        except ToolInputError as e:
            logger.warning("Invalid arguments for %s: %s", name, e)
            return text_result(f"Error: {e}", is_error=True)
        except Exception as e:
            logger.error("Tool %s failed: %s", name, e)
            return text_result(f"Error: {e}", is_error=True)
        return text_result(text)

    async def handle_request(self, req: dict) -> dict | None:
        req_id = req.get("id")
        method = req.get("method", "")

        # Notifications (no id) get no response
        if req_id is None:
            if method == "notifications/initialized":
                logger.info("Client initialized")
            return None

        if method == "initialize":
            return jsonrpc_result(req_id, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            })

        if method == "ping":
            return jsonrpc_result(req_id, {})

        if method == "tools/list":
            return jsonrpc_result(req_id, {"tools": TOOLS})

        if method == "tools/call":
            params = req.get("params") or {}
            if not isinstance(params, dict):
                return jsonrpc_error(req_id, INVALID_PARAMS, "params must be an object")
            name = params.get("name", "")
            if not isinstance(name, str):
                return jsonrpc_error(req_id, INVALID_PARAMS, "Tool name must be a string")
            args = params.get("arguments")
            if args is not None and not isinstance(args, dict):
                return jsonrpc_error(req_id, INVALID_PARAMS, "arguments must be an object")
            result = await self.call_tool(name, args)
            return jsonrpc_result(req_id, result)

        return jsonrpc_error(req_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    # ── Stdio transport (NDJSON) ─────────────────────────────

    async def serve(self, reader: asyncio.StreamReader, write: Callable[[str], None]) -> None:
        """Read requests until EOF, writing one response line per request."""
        while True:
            try:
                raw = await reader.readline()
            except ValueError as e:
                # Over-limit line; the reader has already discarded it
                logger.warning("Dropped oversized request: %s", e)
                write(_dump(jsonrpc_error(None, INVALID_REQUEST, "Request line too long")))
                continue
            if not raw:
                break
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError as e:
                logger.warning("Ignoring request that is not valid UTF-8: %s", e)
                continue
            if not line:
                continue

            try:
                req = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Parse error: %s", e)
                continue
            if not isinstance(req, dict):
                logger.warning("Ignoring non-object request: %r", req)
                continue

            logger.debug("<- %s", req.get("method", "?"))
            try:
                response = await self.handle_request(req)
            except Exception as e:
                logger.error("Handler error for %s: %s", req.get("method", "?"), e)
                if req.get("id") is None:
                    continue
                response = jsonrpc_error(req["id"], INTERNAL_ERROR, f"Internal error: {e}")
            if response:
                write(_dump(response))

    async def run_stdio(self) -> None:
        reader = asyncio.StreamReader(limit=STREAM_LIMIT)
        protocol = asyncio.StreamReaderProtocol(reader)
        await asyncio.get_running_loop().connect_read_pipe(lambda: protocol, sys.stdin)
        logger.info("Server started with stdio transport")
        await self.serve(reader, _write_stdout)


def _dump(message: dict) -> str:
    return json.dumps(message, ensure_ascii=False) + "\n"


def _write_stdout(data: str) -> None:
    sys.stdout.write(data)
    sys.stdout.flush()
