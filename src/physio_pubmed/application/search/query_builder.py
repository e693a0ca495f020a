"""
Query Builder - PubMed search expressions for physical-therapy research.

Turns a SearchRequest into a single E-utilities ``term`` string. Clauses
are always appended in the same order:

1. Physical-therapy context (only for plain free-text queries)
2. Publication-type filter
3. Publication-date window
4. Abstract requirement
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from physio_pubmed.domain.entities import SearchRequest, StudyType

if TYPE_CHECKING:
    from collections.abc import Callable

# Canonical physical-therapy vocabulary. The first three form the context
# clause; the full list is reused for relevance checks.
PT_MESH_TERMS: tuple[str, ...] = (
    '"Physical Therapy Modalities"[MeSH]',
    '"Physical Therapy Specialty"[MeSH]',
    '"Exercise Therapy"[MeSH]',
    '"Rehabilitation"[MeSH]',
    '"Manual Therapy"[MeSH]',
    '"Physiotherapy"[All Fields]',
    '"Physical Rehabilitation"[All Fields]',
)

CONTEXT_TERM_COUNT = 3

STUDY_TYPE_FILTERS: dict[StudyType, str] = {
    StudyType.RCT: "Randomized Controlled Trial",
    StudyType.CLINICAL_TRIAL: "Clinical Trial",
    StudyType.REVIEW: "Review",
    StudyType.META_ANALYSIS: "Meta-Analysis",
}


def _current_year() -> int:
    return datetime.date.today().year


class QueryBuilder:
    """
    Builds PubMed search expressions.

    Pure and deterministic for a fixed clock: the same request always
    yields the same expression.

    Example:
        builder = QueryBuilder()
        builder.build(SearchRequest(query_text="knee pain", study_type=StudyType.RCT))
        # '(knee pain) AND ("Physical Therapy Modalities"[MeSH] OR ...) AND
        #  "Randomized Controlled Trial"[Publication Type]'
    """

    def __init__(self, current_year: Callable[[], int] = _current_year):
        self._current_year = current_year

    def build(self, request: SearchRequest) -> str:
        """
        Build the search expression for ``request``.

        Args:
            request: A validated search request

        Returns:
            E-utilities ``term`` string
        """
        query = request.query_text.strip()

        # Queries that already use field tags are left as the caller wrote them
        if "MeSH" not in query and "[" not in query:
            context = " OR ".join(PT_MESH_TERMS[:CONTEXT_TERM_COUNT])
            query = f"({query}) AND ({context})"

        study_type = StudyType(request.study_type)
        if study_type != StudyType.ALL:
            query += f' AND "{STUDY_TYPE_FILTERS[study_type]}"[Publication Type]'

        if request.date_range is not None:
            from_year = request.date_range.from_year
            to_year = request.date_range.to_year or self._current_year()
            query += f' AND ("{from_year}"[DP] : "{to_year}"[DP])'

        if request.require_abstract:
            query += " AND hasabstract[text]"

        return query
