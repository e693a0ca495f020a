"""
Physio PubMed Search MCP Server

A Model Context Protocol server for physical-therapy literature search
on PubMed.

Features:
- Search with study-type, date and citation filters
- Canned searches for PT research domains and trending articles
- Heuristic quality scoring of every hit
- Rate-limited, cached NCBI E-utilities access

Architecture:
- instructions.py: SERVER_INSTRUCTIONS for AI agents
- tools/: Tool implementations
- container: DI container (dependency-injector) for service lifecycle
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import FastMCP

from physio_pubmed.container import ApplicationContainer, create_container
from physio_pubmed.shared.settings import Settings

from .instructions import SERVER_INSTRUCTIONS
from .tools import register_search_tools

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "physio-pubmed-search"

# ── Module-level DI container ──────────────────────────────────────────────
_container: ApplicationContainer | None = None


def get_container() -> ApplicationContainer:
    """Get the application DI container.

    Raises:
        RuntimeError: If ``create_server()`` has not been called yet.
    """
    if _container is None:
        msg = "Container not initialized. Call create_server() first."
        raise RuntimeError(msg)
    return _container


def _make_lifespan(
    container: ApplicationContainer,
) -> Callable[[FastMCP[Any]], AbstractAsyncContextManager[ApplicationContainer]]:
    """Create a FastMCP lifespan handler bound to *container*."""

    @asynccontextmanager
    async def _lifespan(server: FastMCP[Any]) -> AsyncIterator[ApplicationContainer]:
        """Application lifecycle: startup → yield → shutdown."""
        logger.info("Lifecycle: startup, resources ready")
        try:
            yield container
        finally:
            await container.eutils_client().close()
            logger.info("Lifecycle: shutdown, E-utilities client closed")

    return _lifespan


def create_server(settings: Settings | None = None, name: str = DEFAULT_SERVER_NAME) -> FastMCP:
    """
    Create and configure the Physio PubMed Search MCP server.

    Args:
        settings: Runtime settings (default: read from the environment)
        name: Server name

    Returns:
        Configured FastMCP server instance.
    """
    global _container
    logger.info("Initializing Physio PubMed Search MCP Server...")

    _container = create_container(settings)
    orchestrator = _container.orchestrator()
    resolved = _container.settings()
    logger.info(
        f"E-utilities: {resolved.base_url} "
        f"(api key: {'yes' if resolved.api_key else 'no'}, interval: {resolved.rate_limit_interval}s)"
    )

    mcp = FastMCP(
        name,
        instructions=SERVER_INSTRUCTIONS,
        lifespan=_make_lifespan(_container),
    )

    register_search_tools(mcp, orchestrator)
    logger.info("Tool registration complete")
    return mcp


def main():
    """Run the MCP server over stdio."""

    # Configure logging (stderr; stdout carries the MCP protocol)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    server = create_server(Settings.from_env())
    server.run()


if __name__ == "__main__":
    main()
