"""
Domain Entities

Core business objects for physical-therapy literature search.
"""

from __future__ import annotations

from .article import (
    BIAS_DIMENSIONS,
    PUBMED_ARTICLE_URL,
    ArticleRecord,
    EvidenceLevel,
    PartialRecord,
    QualityMetrics,
    RiskLevel,
)
from .search import DateRange, SearchRequest, SearchResult, SortBy, StudyType

__all__ = [
    # Article entities
    "ArticleRecord",
    "PartialRecord",
    "QualityMetrics",
    "EvidenceLevel",
    "RiskLevel",
    "BIAS_DIMENSIONS",
    "PUBMED_ARTICLE_URL",
    # Search envelopes
    "SearchRequest",
    "SearchResult",
    "DateRange",
    "SortBy",
    "StudyType",
]
