"""
Search MCP Tools - Physical-Therapy Literature Search

Provides tools for searching PubMed for physical-therapy research:
- search_pubmed: Full search with sort, study type, dates and citation filter
- search_pubmed_by_domain: Canned search for one PT research domain
- get_trending_articles: Most-cited recent PT articles
- list_research_domains: Available domains and what they search for

Every tool returns a JSON string. Success payloads carry ``success: true``,
the result fields and a ``message``; failures carry ``success: false``,
``error``, an empty ``articles`` list and ``totalCount: 0``.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from physio_pubmed.application.search import PT_DOMAINS
from physio_pubmed.domain.entities import DateRange, SearchRequest, SearchResult
from physio_pubmed.shared.async_utils import retry_async
from physio_pubmed.shared.exceptions import PhysioPubMedError

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP

    from physio_pubmed.application.search import SearchOrchestrator

logger = logging.getLogger(__name__)

DOMAIN_MAX_RESULTS = 50


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _success(result: SearchResult, message: str, **extra: Any) -> str:
    payload: dict[str, Any] = {"success": True, **extra, **result.to_dict(), "message": message}
    return _dumps(payload)


def _failure(error: Exception, tool_name: str) -> str:
    payload: dict[str, Any] = {
        "success": False,
        "error": str(error) or type(error).__name__,
        "articles": [],
        "totalCount": 0,
        "tool": tool_name,
    }
    if isinstance(error, PhysioPubMedError):
        details = error.to_dict()
        details.pop("error", None)
        payload.update(details)
    return _dumps(payload)


def _date_range(from_year: int | None, to_year: int | None) -> DateRange | None:
    # An upper bound alone is ignored, as PubMed needs both ends of a [DP] range
    if from_year is None:
        return None
    return DateRange(from_year=from_year, to_year=to_year)


def register_search_tools(mcp: FastMCP, orchestrator: SearchOrchestrator):
    """Register physical-therapy search tools (4 tools)."""

    @mcp.tool()
    async def search_pubmed(
        query: str,
        max_results: int = 20,
        offset: int = 0,
        sort: str = "relevance",
        study_type: str = "all",
        from_year: int | None = None,
        to_year: int | None = None,
        min_citations: int | None = None,
        has_abstract: bool = False,
    ) -> str:
        """
        Search PubMed for physical-therapy research.

        Free-text queries are automatically restricted to physical-therapy
        MeSH headings; queries that already use field tags ([MeSH], [tiab],
        ...) are sent as written.

        Args:
            query: Search terms, e.g. "knee osteoarthritis exercise"
            max_results: Page size, 1-100 (default: 20)
            offset: Number of results to skip (pagination)
            sort: "relevance", "latest" or "most_cited"
            study_type: "all", "rct", "clinical_trial", "review" or "meta_analysis"
            from_year: Earliest publication year
            to_year: Latest publication year (default: current year)
            min_citations: Drop articles cited fewer times than this
            has_abstract: Only articles with an abstract

        Returns:
            JSON with articles (quality-scored), totalCount, searchTime, fromCache
        """
        logger.info(f"search_pubmed: query='{query}', sort={sort}, study_type={study_type}")
        try:
            request = SearchRequest(
                query_text=query,
                max_results=max_results,
                offset=offset,
                sort_by=sort,
                study_type=study_type,
                date_range=_date_range(from_year, to_year),
                min_citations=min_citations,
                require_abstract=has_abstract,
            )
            result = await retry_async(lambda: orchestrator.search(request))
            return _success(
                result,
                f"Found {len(result.articles)} articles in {result.elapsed_ms}ms",
            )
        except Exception as e:
            logger.exception(f"search_pubmed failed: {e}")
            return _failure(e, "search_pubmed")

    @mcp.tool()
    async def search_pubmed_by_domain(
        domain: str,
        max_results: int = 20,
        sort: str = "latest",
        study_type: str = "all",
        from_year: int | None = None,
        to_year: int | None = None,
        has_abstract: bool = True,
    ) -> str:
        """
        Search one physical-therapy research domain.

        Domains: musculoskeletal, neurological, cardiopulmonary, pediatric,
        geriatric, sports (see list_research_domains).

        Args:
            domain: Research domain key
            max_results: Page size, capped at 50 (default: 20)
            sort: "latest" (default), "relevance" or "most_cited"
            study_type: "all", "rct", "clinical_trial", "review" or "meta_analysis"
            from_year: Earliest publication year (default: two years ago)
            to_year: Latest publication year (default: current year)
            has_abstract: Only articles with an abstract (default: True)

        Returns:
            JSON with domain, domainDescription, articles, totalCount
        """
        logger.info(f"search_pubmed_by_domain: domain='{domain}', sort={sort}")
        try:
            key = (domain or "").strip().lower()
            result = await retry_async(
                lambda: orchestrator.search_by_domain(
                    key,
                    max_results=min(max_results, DOMAIN_MAX_RESULTS),
                    sort_by=sort,
                    study_type=study_type,
                    date_range=_date_range(from_year, to_year),
                    require_abstract=has_abstract,
                )
            )
            return _success(
                result,
                f"Found {len(result.articles)} {key} articles in {result.elapsed_ms}ms",
                domain=key,
                domainDescription=PT_DOMAINS[key],
            )
        except Exception as e:
            logger.exception(f"search_pubmed_by_domain failed: {e}")
            response = json.loads(_failure(e, "search_pubmed_by_domain"))
            response["availableDomains"] = list(PT_DOMAINS)
            return _dumps(response)

    @mcp.tool()
    async def get_trending_articles(days: int = 30) -> str:
        """
        Most-cited physical-therapy articles from the recent past.

        Args:
            days: Look-back window in days, 1-365 (default: 30)

        Returns:
            JSON with articles sorted by citation count, period, totalCount
        """
        days = max(1, min(365, days or 30))
        logger.info(f"get_trending_articles: days={days}")
        try:
            result = await retry_async(lambda: orchestrator.trending(days))
            return _success(
                result,
                f"Found {len(result.articles)} trending articles from the last {days} days",
                period=f"{days} days",
            )
        except Exception as e:
            logger.exception(f"get_trending_articles failed: {e}")
            return _failure(e, "get_trending_articles")

    @mcp.tool()
    async def list_research_domains() -> str:
        """
        List the physical-therapy research domains usable with search_pubmed_by_domain.

        Returns:
            JSON with availableDomains: key, description, displayName
        """
        domains = [
            {"key": key, "description": description, "displayName": key.capitalize()}
            for key, description in orchestrator.list_domains().items()
        ]
        return _dumps({"success": True, "availableDomains": domains})
