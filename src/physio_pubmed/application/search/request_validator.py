"""
RequestValidator - SearchRequest checks before any network call.

Every problem is collected, so the caller sees all of them at once:

- Query shorter than 3 or longer than 500 characters (after trimming)
- max_results outside 1..max_results_limit
- Negative offset or min_citations
- Unknown sort order or study type
- Years outside 1900..current year, or from_year after to_year

Example:
    >>> validator = RequestValidator(current_year=lambda: 2024)
    >>> validator.problems(SearchRequest(query_text="  k ", max_results=0))
    ['Search query must be at least 3 characters long', 'Max results must be between 1 and 100']
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from physio_pubmed.domain.entities import SearchRequest, SortBy, StudyType
from physio_pubmed.shared.exceptions import InvalidRequestError

if TYPE_CHECKING:
    from collections.abc import Callable

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 500
MIN_YEAR = 1900
DEFAULT_MAX_RESULTS_LIMIT = 100


def _current_year() -> int:
    return datetime.date.today().year


class RequestValidator:
    """Validates SearchRequest invariants."""

    def __init__(
        self,
        max_results_limit: int = DEFAULT_MAX_RESULTS_LIMIT,
        current_year: Callable[[], int] = _current_year,
    ) -> None:
        self.max_results_limit = max_results_limit
        self._current_year = current_year

    def problems(self, request: SearchRequest) -> list[str]:
        """Return every violated invariant as a readable message (empty if valid)."""
        errors: list[str] = []
        query = (request.query_text or "").strip()

        if len(query) < MIN_QUERY_LENGTH:
            errors.append(f"Search query must be at least {MIN_QUERY_LENGTH} characters long")
        elif len(query) > MAX_QUERY_LENGTH:
            errors.append(f"Search query must be at most {MAX_QUERY_LENGTH} characters long")

        if not 1 <= request.max_results <= self.max_results_limit:
            errors.append(f"Max results must be between 1 and {self.max_results_limit}")

        if request.offset < 0:
            errors.append("Offset cannot be negative")

        if request.min_citations is not None and request.min_citations < 0:
            errors.append("Minimum citations cannot be negative")

        try:
            SortBy(request.sort_by)
        except ValueError:
            errors.append(f"Unknown sort order: {request.sort_by!r}")

        try:
            StudyType(request.study_type)
        except ValueError:
            errors.append(f"Unknown study type: {request.study_type!r}")

        if request.date_range is not None:
            errors.extend(self._date_problems(request.date_range.from_year, request.date_range.to_year))

        return errors

    def validate(self, request: SearchRequest) -> None:
        """
        Raise if ``request`` violates any invariant.

        Raises:
            InvalidRequestError: Listing every problem found
        """
        errors = self.problems(request)
        if errors:
            raise InvalidRequestError(errors)

    def _date_problems(self, from_year: int, to_year: int | None) -> list[str]:
        errors: list[str] = []
        current = self._current_year()

        if not MIN_YEAR <= from_year <= current:
            errors.append(f"From year must be between {MIN_YEAR} and current year")
        if to_year is not None:
            if not MIN_YEAR <= to_year <= current:
                errors.append(f"To year must be between {MIN_YEAR} and current year")
            if from_year > to_year:
                errors.append("From year cannot be greater than to year")
        return errors
