"""
MCP Tools

- search: PubMed search, domain search, trending articles, domain listing
"""

from __future__ import annotations

from .search import register_search_tools

__all__ = ["register_search_tools"]
