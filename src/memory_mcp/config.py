"""Configuration loading from environment variables and memory-mcp.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from memory_mcp.models import MEMORY_TYPES

DEFAULT_STORAGE_PATH = Path.home() / ".memory-mcp" / "memories.json"
_CONFIG_FILENAME = "memory-mcp.toml"
_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class LocalBackendConfig:
    """JSON file storage with keyword search."""

    storage_path: Path = DEFAULT_STORAGE_PATH


@dataclass
class RemoteBackendConfig:
    """HTTP memory service."""

    url: str
    api_key: str = ""
    timeout: int = 30


@dataclass
class MemoryMCPConfig:
    """Top-level configuration. ``backend`` is resolved once, at load time."""

    backend: LocalBackendConfig | RemoteBackendConfig = field(default_factory=LocalBackendConfig)
    default_memory_type: str = "fact"
    default_importance: float = 0.5
    debug: bool = False
    log_level: str = "INFO"


def _as_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def load_config(config_path: Path | None = None) -> MemoryMCPConfig:
    """Load configuration from environment variables and optional memory-mcp.toml.

    Priority: environment variables > memory-mcp.toml > defaults.
    The remote backend is selected if and only if a remote URL is set.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.memory-mcp/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".memory-mcp" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    local_data = file_data.get("local", {})
    remote_data = file_data.get("remote", {})
    defaults_data = file_data.get("defaults", {})

    url = os.getenv("MEMORY_MCP_URL") or remote_data.get("url")
    backend: LocalBackendConfig | RemoteBackendConfig
    if url:
        backend = RemoteBackendConfig(
            url=url,
            api_key=os.getenv("MEMORY_MCP_API_KEY", remote_data.get("api_key", "")),
            timeout=int(os.getenv("MEMORY_MCP_TIMEOUT", remote_data.get("timeout", 30))),
        )
    else:
        storage_path = os.getenv("MEMORY_MCP_STORAGE_PATH", local_data.get("storage_path"))
        backend = LocalBackendConfig(
            storage_path=Path(storage_path).expanduser() if storage_path else DEFAULT_STORAGE_PATH
        )

    debug = _as_bool(os.getenv("MEMORY_MCP_DEBUG", file_data.get("debug", False)))
    default_level = "DEBUG" if debug else "INFO"

    default_type = os.getenv("MEMORY_MCP_DEFAULT_TYPE", defaults_data.get("memory_type", "fact"))
    if default_type not in MEMORY_TYPES:
        raise ValueError(
            f"Invalid default memory type {default_type!r}; "
            f"expected one of: {', '.join(MEMORY_TYPES)}"
        )

    return MemoryMCPConfig(
        backend=backend,
        default_memory_type=default_type,
        default_importance=float(
            os.getenv("MEMORY_MCP_DEFAULT_IMPORTANCE", defaults_data.get("importance", 0.5))
        ),
        debug=debug,
        log_level=os.getenv("MEMORY_MCP_LOG_LEVEL", file_data.get("log_level", default_level)),
    )
