"""
Application DI Container (dependency-injector).

Builds the search stack once per application and hands out shared
instances. Nothing in the core reaches for a global; tests build their own
container or override providers.

Usage::

    from physio_pubmed.container import create_container

    container = create_container(Settings.from_env())
    orchestrator = container.orchestrator()
    result = await orchestrator.search(SearchRequest(query_text="knee pain"))

    # In tests, override any provider:
    container.eutils_client.override(providers.Object(mock_client))
"""

from __future__ import annotations

import logging
from typing import Any

from dependency_injector import containers, providers

from physio_pubmed.application.search import QualityScorer, QueryBuilder, SearchOrchestrator
from physio_pubmed.infrastructure.cache import ResponseCache
from physio_pubmed.infrastructure.ncbi import EUtilsClient
from physio_pubmed.shared.async_utils import RateLimiter
from physio_pubmed.shared.settings import Settings

logger = logging.getLogger(__name__)


def _create_settings(config: dict[str, Any]) -> Settings:
    """Settings from the container configuration; unset keys keep their defaults."""
    return Settings(**{key: value for key, value in (config or {}).items() if value is not None})


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for the physical-therapy search stack.

    Manages creation and lifecycle of all core services:
    - ``rate_limiter``: One dispatch queue for every E-utilities call
    - ``response_cache``: Shared TTL cache for responses and results
    - ``eutils_client``: NCBI E-utilities transport
    - ``orchestrator``: End-to-end search
    """

    config = providers.Configuration()

    settings = providers.Singleton(_create_settings, config=config)

    rate_limiter = providers.Singleton(
        RateLimiter,
        interval=settings.provided.rate_limit_interval,
    )

    response_cache = providers.Singleton(
        ResponseCache,
        ttl=settings.provided.cache_ttl,
        max_entries=settings.provided.cache_max_entries,
    )

    eutils_client = providers.Singleton(
        EUtilsClient,
        settings=settings,
        rate_limiter=rate_limiter,
        cache=response_cache,
    )

    query_builder = providers.Singleton(QueryBuilder)

    quality_scorer = providers.Singleton(QualityScorer)

    orchestrator = providers.Singleton(
        SearchOrchestrator,
        client=eutils_client,
        cache=response_cache,
        query_builder=query_builder,
        scorer=quality_scorer,
        settings=settings,
    )


def create_container(settings: Settings | None = None) -> ApplicationContainer:
    """
    Build a container configured from ``settings`` (default: environment).

    Args:
        settings: Explicit settings; ``Settings.from_env()`` when omitted

    Returns:
        Configured ApplicationContainer
    """
    settings = settings or Settings.from_env()
    container = ApplicationContainer()
    container.config.from_dict(settings.as_dict())
    logger.debug(f"Container configured for {settings.base_url}")
    return container


__all__ = ["ApplicationContainer", "create_container"]
