"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import httpx
import pytest

from eutils_payloads import (
    TODAY,
    EUtilsRouter,
    elink_handler,
    make_efetch,
    make_esearch,
    make_esummary,
    make_record_xml,
    make_summary,
)
from physio_pubmed.application.search import SearchOrchestrator
from physio_pubmed.infrastructure.cache import ResponseCache
from physio_pubmed.infrastructure.ncbi import EUtilsClient
from physio_pubmed.shared.async_utils import RateLimiter
from physio_pubmed.shared.settings import Settings

# ============================================================
# Fixtures
# ============================================================


@pytest.fixture
def settings():
    """Settings with no throttling delay and a test identity."""
    return Settings(rate_limit_interval=0.0, email="test@example.com", tool="physio-tests")


@pytest.fixture
def router():
    return EUtilsRouter()


@pytest.fixture
async def http_client(router):
    async with httpx.AsyncClient(transport=httpx.MockTransport(router)) as client:
        yield client


@pytest.fixture
def cache():
    return ResponseCache(ttl=300, max_entries=500)


@pytest.fixture
def eutils_client(settings, http_client, cache):
    return EUtilsClient(
        settings,
        rate_limiter=RateLimiter(interval=0.0),
        cache=cache,
        http_client=http_client,
    )


@pytest.fixture
def orchestrator(eutils_client, settings):
    return SearchOrchestrator(eutils_client, settings=settings, today=lambda: TODAY)


@pytest.fixture
def knee_pain_fixture(router):
    """Three RCTs about knee pain with distinct citation counts."""
    ids = ["31000001", "31000002", "31000003"]
    counts = {"31000001": 12, "31000002": 40, "31000003": 3}
    abstract = (
        "Background: Knee pain limits function. Methods: In this randomized trial with blinded "
        "assessors, 120 adults received exercise therapy or usual care. Results: Pain improved."
    )
    router.on("esearch.fcgi", json=make_esearch(ids, count=57))
    router.on(
        "esummary.fcgi",
        json=make_esummary(
            [
                make_summary(ids[0], title="Hip strengthening for knee pain", pubdate="2022 Jan"),
                make_summary(ids[1], title="Exercise versus surgery for knee pain", pubdate="2021 Sep 3"),
                make_summary(ids[2], title="Taping for patellofemoral pain", pubdate="2023"),
            ]
        ),
    )
    router.on(
        "efetch.fcgi",
        text=make_efetch(
            [
                make_record_xml(
                    pmid,
                    abstract=abstract,
                    doi=f"10.1000/knee.{pmid}",
                    mesh=["Knee Joint", "Exercise Therapy"],
                    publication_types=["Journal Article", "Randomized Controlled Trial"],
                )
                for pmid in ids
            ]
        ),
    )
    router.on("elink.fcgi", handler=elink_handler(counts))
    return {"ids": ids, "counts": counts}
