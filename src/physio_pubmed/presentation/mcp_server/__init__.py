"""
MCP Server - Model Context Protocol surface for physical-therapy search.
"""

from __future__ import annotations

from .server import create_server, get_container, main

__all__ = ["create_server", "get_container", "main"]
