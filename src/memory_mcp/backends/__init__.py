"""Storage backends and the factory that picks one from config."""

from __future__ import annotations

import logging

from memory_mcp.backends.base import BackendInfo, MemoryBackend
from memory_mcp.backends.local import LocalBackend
from memory_mcp.backends.remote import RemoteBackend
from memory_mcp.config import LocalBackendConfig, MemoryMCPConfig, RemoteBackendConfig

logger = logging.getLogger(__name__)

__all__ = ["BackendInfo", "LocalBackend", "MemoryBackend", "RemoteBackend", "create_backend"]


def create_backend(config: MemoryMCPConfig) -> MemoryBackend:
    """Build the backend selected by ``config.backend``. Not yet initialized."""
    backend_config = config.backend

    if isinstance(backend_config, RemoteBackendConfig):
        if not backend_config.api_key:
            logger.warning("MEMORY_MCP_API_KEY not set, some features may be limited")
        logger.info("Using remote backend: %s", backend_config.url)
        return RemoteBackend(
            backend_config.url,
            api_key=backend_config.api_key,
            timeout=backend_config.timeout,
        )

    if isinstance(backend_config, LocalBackendConfig):
        logger.info("Using local backend: %s", backend_config.storage_path)
        logger.debug("Set MEMORY_MCP_URL for full semantic search capabilities")
        return LocalBackend(backend_config.storage_path)

    raise TypeError(f"Unknown backend config: {backend_config!r}")
