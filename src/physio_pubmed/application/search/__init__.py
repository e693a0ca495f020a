"""
Physical-Therapy Search

Key Components:
- RequestValidator: Rejects malformed requests before any network call
- QueryBuilder: Turns a request into a PubMed expression
- QualityScorer: Heuristic quality rubric and evidence level
- SearchOrchestrator: Runs the whole pipeline and caches results
"""

from __future__ import annotations

from .orchestrator import PT_DOMAINS, SearchOrchestrator
from .quality_scorer import DEFAULT_WEIGHTS, QualityScorer, QualityWeights
from .query_builder import PT_MESH_TERMS, STUDY_TYPE_FILTERS, QueryBuilder
from .request_validator import RequestValidator

__all__ = [
    "DEFAULT_WEIGHTS",
    "PT_DOMAINS",
    "PT_MESH_TERMS",
    "STUDY_TYPE_FILTERS",
    "QualityScorer",
    "QualityWeights",
    "QueryBuilder",
    "RequestValidator",
    "SearchOrchestrator",
]
