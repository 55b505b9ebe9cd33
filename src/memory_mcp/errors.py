"""Exception types raised by backends and tool handlers."""

from __future__ import annotations


class MemoryMCPError(Exception):
    """Base class for memory-mcp errors."""


class ToolInputError(MemoryMCPError):
    """A tool was called with a missing or invalid argument."""


class BackendConnectionError(MemoryMCPError):
    """The backend could not be prepared for use. Fatal at startup."""


class RemoteRequestError(MemoryMCPError):
    """The remote memory service answered with a non-2xx status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class StorageError(MemoryMCPError):
    """The local store file could not be written."""
