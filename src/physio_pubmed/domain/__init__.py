"""
Domain Layer - Core Business Objects

Contains:
- entities: Search request/result envelopes and article records
"""

from .entities import (
    ArticleRecord,
    DateRange,
    EvidenceLevel,
    PartialRecord,
    QualityMetrics,
    RiskLevel,
    SearchRequest,
    SearchResult,
    SortBy,
    StudyType,
)

__all__ = [
    "ArticleRecord",
    "PartialRecord",
    "QualityMetrics",
    "EvidenceLevel",
    "RiskLevel",
    "SearchRequest",
    "SearchResult",
    "DateRange",
    "SortBy",
    "StudyType",
]
