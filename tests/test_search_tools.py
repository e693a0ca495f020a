"""Tests for the search MCP tools: search_pubmed, domains, trending."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from physio_pubmed.application.search import PT_DOMAINS
from physio_pubmed.domain.entities import ArticleRecord, DateRange, SearchResult
from physio_pubmed.presentation.mcp_server.tools.search import register_search_tools
from physio_pubmed.shared.exceptions import (
    InvalidParameterError,
    InvalidRequestError,
    NetworkError,
    RateLimitError,
)


def _result(count: int = 1, **overrides) -> SearchResult:
    articles = tuple(
        ArticleRecord(
            external_id=str(1000 + i),
            title=f"Article {i}",
            authors=("Smith J",),
            journal="Physical Therapy",
            publication_date="2023",
            abstract_text="Abstract not available",
            canonical_url=f"https://pubmed.ncbi.nlm.nih.gov/{1000 + i}/",
        )
        for i in range(count)
    )
    params = {"articles": articles, "total_count": 42, "query_text": "knee pain", "elapsed_ms": 12}
    params.update(overrides)
    return SearchResult(**params)


@pytest.fixture
def orchestrator():
    orch = MagicMock()
    orch.search = AsyncMock(return_value=_result(2))
    orch.search_by_domain = AsyncMock(return_value=_result(1))
    orch.trending = AsyncMock(return_value=_result(3))
    orch.list_domains = MagicMock(return_value=dict(PT_DOMAINS))
    return orch


@pytest.fixture
def tools(orchestrator):
    mcp = MagicMock()
    captured = {}
    mcp.tool = lambda: lambda func: (captured.__setitem__(func.__name__, func), func)[1]
    register_search_tools(mcp, orchestrator)
    return captured


def test_registers_four_tools(tools):
    assert set(tools) == {
        "search_pubmed",
        "search_pubmed_by_domain",
        "get_trending_articles",
        "list_research_domains",
    }


# ============================================================
# search_pubmed
# ============================================================


class TestSearchPubmed:
    async def test_success_payload(self, tools, orchestrator):
        parsed = json.loads(await tools["search_pubmed"](query="knee pain"))

        assert parsed["success"] is True
        assert parsed["totalCount"] == 42
        assert len(parsed["articles"]) == 2
        assert parsed["fromCache"] is False
        assert parsed["message"] == "Found 2 articles in 12ms"

    async def test_request_built_from_arguments(self, tools, orchestrator):
        await tools["search_pubmed"](
            query="low back pain",
            max_results=10,
            offset=20,
            sort="most_cited",
            study_type="rct",
            from_year=2018,
            to_year=2022,
            min_citations=5,
            has_abstract=True,
        )

        request = orchestrator.search.await_args.args[0]
        assert request.query_text == "low back pain"
        assert request.max_results == 10
        assert request.offset == 20
        assert request.sort_by == "most_cited"
        assert request.study_type == "rct"
        assert request.date_range == DateRange(2018, 2022)
        assert request.min_citations == 5
        assert request.require_abstract is True

    async def test_to_year_alone_is_ignored(self, tools, orchestrator):
        await tools["search_pubmed"](query="stroke", to_year=2020)
        assert orchestrator.search.await_args.args[0].date_range is None

    async def test_validation_failure(self, tools, orchestrator):
        orchestrator.search.side_effect = InvalidRequestError(["Search query must be at least 3 characters long"])

        parsed = json.loads(await tools["search_pubmed"](query="ab"))

        assert parsed["success"] is False
        assert "at least 3 characters" in parsed["error"]
        assert parsed["articles"] == []
        assert parsed["totalCount"] == 0
        assert parsed["tool"] == "search_pubmed"
        assert parsed["category"] == "validation"
        assert parsed["problems"] == ["Search query must be at least 3 characters long"]
        # Validation errors are not retried
        assert orchestrator.search.await_count == 1

    async def test_transient_failure_retried(self, tools, orchestrator):
        orchestrator.search.side_effect = [RateLimitError(retry_after=0.01), _result(1)]

        parsed = json.loads(await tools["search_pubmed"](query="knee pain"))

        assert parsed["success"] is True
        assert orchestrator.search.await_count == 2

    async def test_unexpected_error(self, tools, orchestrator):
        orchestrator.search.side_effect = RuntimeError("boom")

        parsed = json.loads(await tools["search_pubmed"](query="knee pain"))

        assert parsed["success"] is False
        assert parsed["error"] == "boom"
        assert "category" not in parsed


# ============================================================
# search_pubmed_by_domain
# ============================================================


class TestSearchByDomain:
    async def test_defaults(self, tools, orchestrator):
        parsed = json.loads(await tools["search_pubmed_by_domain"](domain="Neurological"))

        assert parsed["success"] is True
        assert parsed["domain"] == "neurological"
        assert parsed["domainDescription"] == PT_DOMAINS["neurological"]

        args = orchestrator.search_by_domain.await_args
        assert args.args == ("neurological",)
        assert args.kwargs["sort_by"] == "latest"
        assert args.kwargs["require_abstract"] is True
        assert args.kwargs["max_results"] == 20
        # The default year window is applied by the orchestrator
        assert args.kwargs["date_range"] is None

    async def test_max_results_capped(self, tools, orchestrator):
        await tools["search_pubmed_by_domain"](domain="sports", max_results=80, from_year=2015, to_year=2020)

        kwargs = orchestrator.search_by_domain.await_args.kwargs
        assert kwargs["max_results"] == 50
        assert kwargs["date_range"] == DateRange(2015, 2020)

    async def test_unknown_domain_lists_available(self, tools, orchestrator):
        orchestrator.search_by_domain.side_effect = InvalidParameterError(
            "domain", "astrology", "one of: musculoskeletal, neurological"
        )

        parsed = json.loads(await tools["search_pubmed_by_domain"](domain="astrology"))

        assert parsed["success"] is False
        assert parsed["availableDomains"] == list(PT_DOMAINS)
        assert parsed["tool"] == "search_pubmed_by_domain"


# ============================================================
# get_trending_articles / list_research_domains
# ============================================================


class TestTrending:
    async def test_success(self, tools, orchestrator):
        parsed = json.loads(await tools["get_trending_articles"](days=14))

        assert parsed["success"] is True
        assert parsed["period"] == "14 days"
        assert len(parsed["articles"]) == 3
        orchestrator.trending.assert_awaited_once_with(14)

    @pytest.mark.parametrize(("days", "expected"), [(1000, 365), (0, 30), (-3, 1)])
    async def test_days_clamped(self, tools, orchestrator, days, expected):
        parsed = json.loads(await tools["get_trending_articles"](days=days))
        assert parsed["period"] == f"{expected} days"
        orchestrator.trending.assert_awaited_once_with(expected)

    async def test_failure(self, tools, orchestrator, monkeypatch):
        orchestrator.trending.side_effect = NetworkError("down", endpoint="esearch.fcgi")
        monkeypatch.setattr(
            "physio_pubmed.presentation.mcp_server.tools.search.retry_async",
            lambda func: func(),
        )

        parsed = json.loads(await tools["get_trending_articles"]())

        assert parsed["success"] is False
        assert parsed["endpoint"] == "esearch.fcgi"
        assert parsed["retryable"] is True


class TestListDomains:
    async def test_lists_all_domains(self, tools):
        parsed = json.loads(await tools["list_research_domains"]())

        assert parsed["success"] is True
        keys = [d["key"] for d in parsed["availableDomains"]]
        assert keys == list(PT_DOMAINS)
        assert parsed["availableDomains"][0]["displayName"] == "Musculoskeletal"
