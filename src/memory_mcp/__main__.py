"""Entry point: python -m memory_mcp [serve|status]

- No args / "serve": MCP server on stdio (what an MCP client launches)
- "status":          Initialize the backend and print its status
"""

from __future__ import annotations

import asyncio
import logging
import sys

from memory_mcp.backends import create_backend
from memory_mcp.config import MemoryMCPConfig, load_config
from memory_mcp.errors import BackendConnectionError, StorageError
from memory_mcp.server import MemoryServer

logger = logging.getLogger("memory_mcp")


def _setup_logging(level: str) -> None:
    # stdout carries the protocol
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


async def _serve(config: MemoryMCPConfig) -> None:
    backend = create_backend(config)
    server = MemoryServer(
        backend,
        default_type=config.default_memory_type,
        default_importance=config.default_importance,
    )
    try:
        await backend.initialize()
        await server.run_stdio()
    finally:
        await backend.close()


async def _status(config: MemoryMCPConfig) -> str:
    backend = create_backend(config)
    try:
        await backend.initialize()
        result = await MemoryServer(backend).call_tool("memory_status", {})
    finally:
        await backend.close()
    return result["content"][0]["text"]


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "serve"
    if cmd not in ("serve", "status"):
        print("Usage: python -m memory_mcp [serve|status]", file=sys.stderr)
        print("  serve   MCP server on stdio (default)", file=sys.stderr)
        print("  status  Show backend type, connectivity and features", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    _setup_logging(config.log_level)

    try:
        if cmd == "serve":
            asyncio.run(_serve(config))
        else:
            print(asyncio.run(_status(config)))
    except KeyboardInterrupt:
        pass
    except (BackendConnectionError, StorageError) as e:
        logger.error("Fatal error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
