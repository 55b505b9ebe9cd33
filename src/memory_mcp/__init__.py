"""Persistent memory for AI assistants over MCP.

Backends:
    local   : JSON file (~/.memory-mcp/memories.json) + keyword search
    remote  : HTTP memory service, selected when MEMORY_MCP_URL is set

Run as a stdio MCP server with `python -m memory_mcp`.
"""

__version__ = "0.1.0"
