"""End-to-end tests for SearchOrchestrator over a mocked E-utilities transport."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from eutils_payloads import make_esearch
from physio_pubmed.domain.entities import DateRange, SearchRequest, SortBy, StudyType
from physio_pubmed.shared.exceptions import (
    InvalidParameterError,
    InvalidRequestError,
    SearchTimeoutError,
    ServiceUnavailableError,
)


def knee_pain_request(**overrides) -> SearchRequest:
    params = {
        "query_text": "knee pain",
        "study_type": StudyType.RCT,
        "date_range": DateRange(2020, 2024),
        "sort_by": SortBy.MOST_CITED,
        "require_abstract": True,
    }
    params.update(overrides)
    return SearchRequest(**params)


class TestSearch:
    async def test_knee_pain_most_cited(self, orchestrator, router, knee_pain_fixture):
        result = await orchestrator.search(knee_pain_request())

        term = router.calls("esearch.fcgi")[0].url.params["term"]
        assert term.startswith("(knee pain) AND (")
        assert '"Randomized Controlled Trial"[Publication Type]' in term
        assert '("2020"[DP] : "2024"[DP])' in term
        assert term.endswith(" AND hasabstract[text]")

        assert [a.citation_count for a in result.articles] == [40, 12, 3]
        assert [a.external_id for a in result.articles] == ["31000002", "31000001", "31000003"]
        assert result.total_count == 57
        assert result.served_from_cache is False

    async def test_articles_are_fully_assembled(self, orchestrator, knee_pain_fixture):
        result = await orchestrator.search(knee_pain_request())
        article = result.articles[0]

        assert article.title == "Exercise versus surgery for knee pain"
        assert article.doi == "10.1000/knee.31000002"
        assert article.mesh_terms == ("Knee Joint", "Exercise Therapy")
        assert article.canonical_url == "https://pubmed.ncbi.nlm.nih.gov/31000002/"
        assert article.quality is not None
        assert article.quality.evidence_level.value == "Randomized Controlled Trial"

    async def test_summaries_and_records_fetched_once(self, orchestrator, router, knee_pain_fixture):
        await orchestrator.search(knee_pain_request())

        assert len(router.calls("esummary.fcgi")) == 1
        assert len(router.calls("efetch.fcgi")) == 1
        assert router.calls("efetch.fcgi")[0].url.params["id"] == "31000001,31000002,31000003"

    async def test_repeat_served_from_cache(self, orchestrator, router, knee_pain_fixture):
        first = await orchestrator.search(knee_pain_request())
        requests_made = len(router.requests)

        second = await orchestrator.search(knee_pain_request())

        assert len(router.requests) == requests_made
        assert second.served_from_cache is True
        assert second.articles == first.articles
        assert second.total_count == first.total_count

    async def test_relevance_keeps_pubmed_order_without_citations(self, orchestrator, router, knee_pain_fixture):
        result = await orchestrator.search(knee_pain_request(sort_by=SortBy.RELEVANCE))

        assert [a.external_id for a in result.articles] == knee_pain_fixture["ids"]
        assert all(a.citation_count is None for a in result.articles)
        assert router.calls("elink.fcgi") == []

    async def test_latest_sorts_by_publication_date(self, orchestrator, router, knee_pain_fixture):
        result = await orchestrator.search(knee_pain_request(sort_by=SortBy.LATEST))

        assert [a.publication_date for a in result.articles] == ["2023", "2022 Jan", "2021 Sep 3"]
        assert router.calls("esearch.fcgi")[0].url.params["sort"] == "pub_date"

    async def test_min_citations_is_inclusive(self, orchestrator, knee_pain_fixture):
        result = await orchestrator.search(knee_pain_request(sort_by=SortBy.RELEVANCE, min_citations=12))

        assert [a.citation_count for a in result.articles] == [12, 40]
        # PubMed's total is not adjusted by local filtering
        assert result.total_count == 57

    async def test_citation_failure_degrades_to_zero(self, orchestrator, router, knee_pain_fixture):
        router.on("elink.fcgi", status=500, json={})

        result = await orchestrator.search(knee_pain_request())

        assert len(result.articles) == 3
        assert all(a.citation_count == 0 for a in result.articles)
        assert [a.external_id for a in result.articles] == knee_pain_fixture["ids"]

    async def test_missing_summary_keeps_placeholders(self, orchestrator, router, knee_pain_fixture):
        router.on("esummary.fcgi", json={"result": {"uids": []}})

        result = await orchestrator.search(knee_pain_request(sort_by=SortBy.RELEVANCE))

        assert len(result.articles) == 3
        assert all(a.title == "Untitled" for a in result.articles)
        assert all(a.doi is not None for a in result.articles)

    async def test_no_hits_skips_other_endpoints(self, orchestrator, router):
        router.on("esearch.fcgi", json=make_esearch([], count=0))

        result = await orchestrator.search(SearchRequest(query_text="nonexistent condition", sort_by=SortBy.MOST_CITED))

        assert result.articles == ()
        assert result.total_count == 0
        assert [r.url.path.rsplit("/", 1)[-1] for r in router.requests] == ["esearch.fcgi"]

    async def test_result_dict(self, orchestrator, knee_pain_fixture):
        data = (await orchestrator.search(knee_pain_request())).to_dict()

        assert data["query"] == "knee pain"
        assert data["totalCount"] == 57
        assert data["fromCache"] is False
        assert data["articles"][0]["citationCount"] == 40
        assert data["articles"][0]["quality"]["score"] == 100


class TestSearchFailures:
    async def test_validation_happens_before_network(self, orchestrator, router):
        with pytest.raises(InvalidRequestError) as exc_info:
            await orchestrator.search(SearchRequest(query_text="ab", max_results=0))

        assert len(exc_info.value.problems) == 2
        assert router.requests == []

    async def test_future_year_rejected(self, orchestrator, router):
        with pytest.raises(InvalidRequestError, match="From year"):
            await orchestrator.search(SearchRequest(query_text="stroke", date_range=DateRange(2030)))
        assert router.requests == []

    async def test_required_call_failure_propagates(self, orchestrator, router, knee_pain_fixture):
        router.on("efetch.fcgi", status=503, json={})

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await orchestrator.search(knee_pain_request())
        assert exc_info.value.status_code == 503

    async def test_timeout(self, orchestrator, router):
        async def stall(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=make_esearch([]))

        router.on("esearch.fcgi", handler=stall)
        request = SearchRequest(query_text="shoulder pain")

        with pytest.raises(SearchTimeoutError):
            await orchestrator.search(request, timeout=0.05)

        assert not orchestrator.client.cache.has("search:" + request.cache_key())


class TestCannedSearches:
    async def test_domain_search(self, orchestrator, router, knee_pain_fixture):
        result = await orchestrator.search_by_domain("Musculoskeletal", sort_by=SortBy.MOST_CITED)

        params = router.calls("esearch.fcgi")[0].url.params
        assert "musculoskeletal OR orthopedic" in params["term"]
        assert "physical therapy OR physiotherapy" in params["term"]
        assert '("2022"[DP] : "2024"[DP])' in params["term"]
        assert params["retmax"] == "20"
        assert [a.citation_count for a in result.articles] == [40, 12, 3]

    async def test_domain_search_keeps_explicit_years(self, orchestrator, router, knee_pain_fixture):
        await orchestrator.search_by_domain("sports", date_range=DateRange(2015, 2020))

        term = router.calls("esearch.fcgi")[0].url.params["term"]
        assert '("2015"[DP] : "2020"[DP])' in term
        assert '"2022"[DP]' not in term

    async def test_unknown_domain(self, orchestrator, router):
        with pytest.raises(InvalidParameterError) as exc_info:
            await orchestrator.search_by_domain("astrology")

        assert exc_info.value.param_name == "domain"
        assert router.requests == []

    def test_list_domains(self, orchestrator):
        domains = orchestrator.list_domains()
        assert set(domains) == {
            "musculoskeletal",
            "neurological",
            "cardiopulmonary",
            "pediatric",
            "geriatric",
            "sports",
        }

    async def test_trending(self, orchestrator, router, knee_pain_fixture):
        result = await orchestrator.trending(days=30)

        params = router.calls("esearch.fcgi")[0].url.params
        assert '("2024"[DP] : "2024"[DP])' in params["term"]
        assert params["term"].endswith(" AND hasabstract[text]")
        assert params["retmax"] == "20"
        assert router.calls("elink.fcgi")
        assert [a.citation_count for a in result.articles] == [40, 12, 3]

    @pytest.mark.parametrize(("days", "from_year"), [(1000, "2023"), (0, "2024"), (-5, "2024"), (200, "2023")])
    async def test_trending_window_clamped(self, orchestrator, router, knee_pain_fixture, days, from_year):
        await orchestrator.trending(days=days)

        term = router.calls("esearch.fcgi")[0].url.params["term"]
        assert f'("{from_year}"[DP] : "2024"[DP])' in term
