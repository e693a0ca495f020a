"""
Allow running the MCP server as a module: python -m physio_pubmed
"""

from __future__ import annotations

from .presentation.mcp_server.server import main

if __name__ == "__main__":
    main()
