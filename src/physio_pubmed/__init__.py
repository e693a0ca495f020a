"""
Physio PubMed Search - physical-therapy literature search on PubMed.

Searches NCBI E-utilities, enriches each hit with abstract, DOI, MeSH
terms, publication types and optional citation counts, scores it with a
quality rubric and returns a typed, paginated, sorted result.

Usage:
    from physio_pubmed import EUtilsClient, SearchOrchestrator, SearchRequest, Settings

    settings = Settings.from_env()
    async with EUtilsClient(settings) as client:
        orchestrator = SearchOrchestrator(client, settings=settings)
        result = await orchestrator.search(SearchRequest(query_text="knee pain"))
"""

from __future__ import annotations

from .application.search import QualityScorer, QueryBuilder, SearchOrchestrator
from .domain.entities import (
    ArticleRecord,
    DateRange,
    EvidenceLevel,
    QualityMetrics,
    RiskLevel,
    SearchRequest,
    SearchResult,
    SortBy,
    StudyType,
)
from .infrastructure.cache import ResponseCache
from .infrastructure.ncbi import EUtilsClient
from .shared.async_utils import RateLimiter, retry_async
from .shared.settings import Settings

__version__ = "0.1.0"

__all__ = [
    "ArticleRecord",
    "DateRange",
    "EUtilsClient",
    "EvidenceLevel",
    "QualityMetrics",
    "QualityScorer",
    "QueryBuilder",
    "RateLimiter",
    "ResponseCache",
    "RiskLevel",
    "SearchOrchestrator",
    "SearchRequest",
    "SearchResult",
    "Settings",
    "SortBy",
    "StudyType",
    "retry_async",
    "__version__",
]
