"""
Search request and result envelopes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .article import ArticleRecord


class SortBy(str, Enum):
    """Result ordering."""

    RELEVANCE = "relevance"
    LATEST = "latest"
    MOST_CITED = "most_cited"


class StudyType(str, Enum):
    """Publication-type filter."""

    ALL = "all"
    RCT = "rct"
    CLINICAL_TRIAL = "clinical_trial"
    REVIEW = "review"
    META_ANALYSIS = "meta_analysis"


@dataclass(frozen=True)
class DateRange:
    """Publication-year window. An open ``to_year`` means the current year."""

    from_year: int
    to_year: int | None = None


@dataclass(frozen=True)
class SearchRequest:
    """
    One search, as submitted by a caller.

    Invariants (query length, result bounds, year ordering) are checked by
    the request validator before any network call, not here.
    """

    query_text: str
    max_results: int = 20
    offset: int = 0
    sort_by: SortBy = SortBy.RELEVANCE
    study_type: StudyType = StudyType.ALL
    date_range: DateRange | None = None
    min_citations: int | None = None
    require_abstract: bool = False

    def cache_key(self) -> str:
        """Deterministic stringification of every field."""
        date_part = "-"
        if self.date_range is not None:
            date_part = f"{self.date_range.from_year}:{self.date_range.to_year or ''}"
        return "|".join(
            [
                self.query_text.strip(),
                str(self.max_results),
                str(self.offset),
                SortBy(self.sort_by).value,
                StudyType(self.study_type).value,
                date_part,
                "" if self.min_citations is None else str(self.min_citations),
                "1" if self.require_abstract else "0",
            ]
        )


@dataclass(frozen=True)
class SearchResult:
    """
    Typed result envelope.

    ``total_count`` is what PubMed reported for the expression and may be
    larger than ``len(articles)`` because of pagination and filtering.
    """

    articles: tuple[ArticleRecord, ...]
    total_count: int
    query_text: str
    elapsed_ms: int
    served_from_cache: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "articles": [article.to_dict() for article in self.articles],
            "totalCount": self.total_count,
            "query": self.query_text,
            "searchTime": self.elapsed_ms,
            "fromCache": self.served_from_cache,
        }
