"""
NCBI E-utilities Infrastructure

- eutils: async HTTP client (esearch, esummary, efetch, elink)
- record_parser: efetch XML / esummary JSON to ArticleRecord
"""

from __future__ import annotations

from .eutils import CITATION_BATCH_SIZE, EUtilsClient, IdSearchResult
from .record_parser import merge_article, parse, parse_publication_date

__all__ = [
    "CITATION_BATCH_SIZE",
    "EUtilsClient",
    "IdSearchResult",
    "merge_article",
    "parse",
    "parse_publication_date",
]
