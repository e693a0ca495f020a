"""
Search Orchestrator - End-to-end physical-therapy literature search.

Pipeline:
    validate -> result cache -> build expression -> esearch
        -> (esummary || efetch) -> parse + merge -> [elink citations]
        -> quality scoring -> min-citation filter -> sort -> cache

Architecture:
    SearchRequest
        │
        ▼
    ┌──────────────────┐
    │ RequestValidator │  ← every problem reported at once
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │   QueryBuilder   │  ← PT context, study type, dates, abstract
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │   EUtilsClient   │  ← rate-limited, cached E-utilities calls
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │  QualityScorer   │  ← rubric, evidence level, bias, applicability
    └────────┬─────────┘
             ▼
        SearchResult

Also provides the canned searches: research domains and trending articles.
"""

from __future__ import annotations

import asyncio
import dataclasses
import datetime
import logging
import time
from typing import TYPE_CHECKING, Any

from physio_pubmed.domain.entities import (
    ArticleRecord,
    DateRange,
    SearchRequest,
    SearchResult,
    SortBy,
)
from physio_pubmed.infrastructure.ncbi import record_parser
from physio_pubmed.shared.exceptions import InvalidParameterError, SearchTimeoutError
from physio_pubmed.shared.settings import Settings

from .quality_scorer import QualityScorer
from .query_builder import QueryBuilder
from .request_validator import RequestValidator

if TYPE_CHECKING:
    from collections.abc import Callable

    from physio_pubmed.infrastructure.cache import ResponseCache
    from physio_pubmed.infrastructure.ncbi import EUtilsClient

logger = logging.getLogger(__name__)

# =============================================================================
# Canned Searches
# =============================================================================

PT_DOMAINS: dict[str, str] = {
    "musculoskeletal": 'musculoskeletal OR orthopedic OR "low back pain" OR knee OR shoulder',
    "neurological": 'neurological OR stroke OR "spinal cord injury" OR "traumatic brain injury"',
    "cardiopulmonary": 'cardiopulmonary OR cardiac OR respiratory OR "heart failure"',
    "pediatric": "pediatric OR paediatric OR children OR infant",
    "geriatric": 'geriatric OR elderly OR "older adult" OR aging',
    "sports": 'sports OR athletic OR "sports medicine" OR injury prevention',
}

PT_CONTEXT = "physical therapy OR physiotherapy"
DOMAIN_DEFAULT_YEARS = 2

TRENDING_QUERY = PT_CONTEXT
TRENDING_MAX_RESULTS = 20
TRENDING_MIN_CITATIONS = 1
TRENDING_DEFAULT_DAYS = 30
TRENDING_MAX_DAYS = 365

SEARCH_CACHE_PREFIX = "search:"


class SearchOrchestrator:
    """
    Runs SearchRequests against PubMed and assembles SearchResults.

    All collaborators are injected; nothing is global. Results are cached
    by the request's full cache key, so repeating a search within the TTL
    is served without any E-utilities call.

    Example:
        async with EUtilsClient(settings) as client:
            orchestrator = SearchOrchestrator(client, settings=settings)
            result = await orchestrator.search(
                SearchRequest(query_text="knee pain", sort_by=SortBy.MOST_CITED)
            )
    """

    def __init__(
        self,
        client: EUtilsClient,
        *,
        cache: ResponseCache | None = None,
        query_builder: QueryBuilder | None = None,
        scorer: QualityScorer | None = None,
        validator: RequestValidator | None = None,
        settings: Settings | None = None,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            client: E-utilities transport (carries the rate limiter)
            cache: Result cache (default: the client's response cache)
            query_builder: Expression builder
            scorer: Quality scorer
            validator: Request validator
            settings: Page-size limits
            today: Date source for year bounds and trending windows
        """
        self._client = client
        self._settings = settings or Settings()
        self._today = today
        self._cache = cache if cache is not None else client.cache

        def current_year() -> int:
            return self._today().year

        self._builder = query_builder or QueryBuilder(current_year=current_year)
        self._scorer = scorer or QualityScorer(current_year=current_year)
        self._validator = validator or RequestValidator(
            max_results_limit=self._settings.max_results_limit,
            current_year=current_year,
        )

    @property
    def client(self) -> EUtilsClient:
        return self._client

    @property
    def query_builder(self) -> QueryBuilder:
        return self._builder

    # =========================================================================
    # Search
    # =========================================================================

    async def search(self, request: SearchRequest, *, timeout: float | None = None) -> SearchResult:
        """
        Run one search.

        Args:
            request: What to search for
            timeout: Overall deadline in seconds (None = no deadline)

        Returns:
            SearchResult with scored, filtered and sorted articles

        Raises:
            InvalidRequestError: Request fails validation (no network call made)
            TransportError: A required E-utilities call failed
            SearchTimeoutError: ``timeout`` expired first
        """
        started = time.perf_counter()
        self._validator.validate(request)

        cache_key = SEARCH_CACHE_PREFIX + request.cache_key()
        cached = self._cache.get(cache_key)
        if cached is not None:
            elapsed = _elapsed_ms(started)
            logger.debug(f"Search cache hit for '{request.query_text}'")
            return dataclasses.replace(cached, served_from_cache=True, elapsed_ms=elapsed)

        if timeout is None:
            result = await self._execute(request, started)
        else:
            try:
                async with asyncio.timeout(timeout):
                    result = await self._execute(request, started)
            except TimeoutError as e:
                logger.warning(f"Search '{request.query_text}' timed out after {timeout:g}s")
                raise SearchTimeoutError(timeout) from e

        self._cache.set(cache_key, result)
        logger.info(
            f"Search '{request.query_text}' returned {len(result.articles)} of "
            f"{result.total_count} articles in {result.elapsed_ms}ms"
        )
        return result

    async def _execute(self, request: SearchRequest, started: float) -> SearchResult:
        expression = self._builder.build(request)
        sort_by = SortBy(request.sort_by)
        logger.debug(f"PubMed expression: {expression}")

        hits = await self._client.search_ids(expression, sort_by, request.max_results, request.offset)
        if not hits.ids:
            return SearchResult(
                articles=(),
                total_count=hits.total_count,
                query_text=request.query_text,
                elapsed_ms=_elapsed_ms(started),
            )

        summaries, raw_records = await asyncio.gather(
            self._client.fetch_summaries(hits.ids),
            self._client.fetch_full_records(hits.ids),
        )
        partials = record_parser.parse(raw_records, hits.ids)

        citations: dict[str, int] | None = None
        if self._needs_citations(request):
            citations = await self._client.fetch_citation_counts(hits.ids)

        articles = [
            self._scorer.annotate(
                record_parser.merge_article(
                    pmid,
                    summaries.get(pmid),
                    partials.get(pmid),
                    citation_count=None if citations is None else citations.get(pmid, 0),
                )
            )
            for pmid in hits.ids
        ]

        if request.min_citations is not None:
            articles = [a for a in articles if (a.citation_count or 0) >= request.min_citations]

        return SearchResult(
            articles=tuple(_sort_articles(articles, sort_by)),
            total_count=hits.total_count,
            query_text=request.query_text,
            elapsed_ms=_elapsed_ms(started),
        )

    @staticmethod
    def _needs_citations(request: SearchRequest) -> bool:
        return SortBy(request.sort_by) == SortBy.MOST_CITED or bool(request.min_citations)

    # =========================================================================
    # Canned Searches
    # =========================================================================

    async def search_by_domain(
        self,
        domain: str,
        *,
        timeout: float | None = None,
        **params: Any,
    ) -> SearchResult:
        """
        Search one physical-therapy research domain.

        Args:
            domain: Key of PT_DOMAINS (case-insensitive)
            timeout: Overall deadline in seconds
            **params: Any other SearchRequest field except ``query_text``.
                Without a ``date_range`` the search covers the last
                DOMAIN_DEFAULT_YEARS years up to the current year.

        Raises:
            InvalidParameterError: Unknown domain
        """
        key = (domain or "").strip().lower()
        expression = PT_DOMAINS.get(key)
        if expression is None:
            raise InvalidParameterError("domain", domain, f"one of: {', '.join(PT_DOMAINS)}")

        params.setdefault("max_results", self._settings.default_page_size)
        if params.get("date_range") is None:
            params["date_range"] = DateRange(from_year=self._today().year - DOMAIN_DEFAULT_YEARS)
        request = SearchRequest(query_text=f"({expression}) AND ({PT_CONTEXT})", **params)
        return await self.search(request, timeout=timeout)

    async def trending(self, days: int = TRENDING_DEFAULT_DAYS, *, timeout: float | None = None) -> SearchResult:
        """
        Most-cited recent physical-therapy articles.

        Args:
            days: Look-back window, clamped to 1..365. PubMed dates are
                matched by year, so the window covers whole years.
            timeout: Overall deadline in seconds
        """
        days = max(1, min(TRENDING_MAX_DAYS, int(days)))
        today = self._today()
        since = today - datetime.timedelta(days=days)

        request = SearchRequest(
            query_text=TRENDING_QUERY,
            max_results=min(TRENDING_MAX_RESULTS, self._settings.max_results_limit),
            sort_by=SortBy.MOST_CITED,
            date_range=DateRange(from_year=since.year, to_year=today.year),
            min_citations=TRENDING_MIN_CITATIONS,
            require_abstract=True,
        )
        return await self.search(request, timeout=timeout)

    @staticmethod
    def list_domains() -> dict[str, str]:
        """Research domains and the expressions they search for."""
        return dict(PT_DOMAINS)

    async def close(self) -> None:
        await self._client.close()


# =============================================================================
# Helpers
# =============================================================================


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _sort_articles(articles: list[ArticleRecord], sort_by: SortBy) -> list[ArticleRecord]:
    if sort_by == SortBy.MOST_CITED:
        return sorted(articles, key=lambda a: -(a.citation_count or 0))

    if sort_by == SortBy.LATEST:

        def date_key(article: ArticleRecord) -> tuple[bool, int]:
            published = record_parser.parse_publication_date(article.publication_date)
            if published is None:
                return (True, 0)
            return (False, -published.toordinal())

        return sorted(articles, key=date_key)

    # Relevance: keep PubMed's order
    return list(articles)
