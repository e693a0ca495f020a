"""
E-utilities Client - Async access to NCBI esearch / esummary / efetch / elink.

Every request goes through the same path:
    cache lookup -> RateLimiter.throttle -> httpx GET -> decode -> cache store

Required calls (id search, summaries, full records) raise typed
TransportError subclasses. Citation counts are best effort: a failed
batch is logged and counted as zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from typing_extensions import Self

from physio_pubmed.domain.entities import SortBy
from physio_pubmed.infrastructure.cache import MISS, ResponseCache, make_key
from physio_pubmed.shared.async_utils import RateLimiter
from physio_pubmed.shared.exceptions import (
    EnrichmentError,
    NetworkError,
    RateLimitError,
    ResponseFormatError,
    ServiceUnavailableError,
    TransportError,
)
from physio_pubmed.shared.settings import Settings

logger = logging.getLogger(__name__)

ESEARCH = "esearch.fcgi"
ESUMMARY = "esummary.fcgi"
EFETCH = "efetch.fcgi"
ELINK = "elink.fcgi"

CITED_IN_LINKNAME = "pubmed_pubmed_citedin"
CITATION_BATCH_SIZE = 10


@dataclass(frozen=True)
class IdSearchResult:
    """esearch outcome: one page of ids plus PubMed's total hit count."""

    ids: tuple[str, ...]
    total_count: int


class EUtilsClient:
    """
    Async client for the PubMed E-utilities.

    Owns one shared httpx.AsyncClient unless one is injected. The rate
    limiter and cache are injected so several clients (or the tests) can
    share them.

    Example:
        async with EUtilsClient(settings) as client:
            hits = await client.search_ids('knee AND "Exercise Therapy"[MeSH]')
            summaries = await client.fetch_summaries(hits.ids)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        rate_limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            settings: Endpoint, credentials and timeouts
            rate_limiter: Shared dispatch queue (default: one per client)
            cache: Shared response cache (default: one per client)
            http_client: Pre-built httpx client; closing it stays the caller's job
        """
        self._settings = settings or Settings()
        self._base_url = self._settings.base_url.rstrip("/")
        self._limiter = rate_limiter or RateLimiter(self._settings.rate_limit_interval)
        self._cache = cache or ResponseCache(
            ttl=self._settings.cache_ttl,
            max_entries=self._settings.cache_max_entries,
        )
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._settings.request_timeout,
            limits=httpx.Limits(
                max_connections=10,
                max_keepalive_connections=5,
                keepalive_expiry=30.0,
            ),
        )

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    # =========================================================================
    # Public API
    # =========================================================================

    async def search_ids(
        self,
        expression: str,
        sort: SortBy | str = SortBy.RELEVANCE,
        max_results: int = 20,
        offset: int = 0,
    ) -> IdSearchResult:
        """
        Run esearch for ``expression``.

        Args:
            expression: PubMed search expression
            sort: ``latest`` maps to PubMed's ``pub_date``; anything else to ``relevance``
            max_results: Page size (``retmax``)
            offset: Page start (``retstart``)

        Returns:
            IdSearchResult with the page's ids in PubMed's order
        """
        params = {
            "db": "pubmed",
            "term": expression,
            "retmode": "json",
            "retmax": max_results,
            "retstart": offset,
            "sort": "pub_date" if SortBy(sort) == SortBy.LATEST else "relevance",
        }
        data = await self._request(ESEARCH, params)

        result = data.get("esearchresult") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise ResponseFormatError("esearch response has no 'esearchresult'", endpoint=ESEARCH)

        ids = tuple(str(pmid) for pmid in result.get("idlist") or [])
        try:
            total = int(result.get("count") or 0)
        except (TypeError, ValueError) as e:
            raise ResponseFormatError(f"esearch count is not a number: {result.get('count')!r}", endpoint=ESEARCH) from e

        logger.debug(f"esearch returned {len(ids)} of {total} ids")
        return IdSearchResult(ids=ids, total_count=total)

    async def fetch_summaries(self, ids: list[str] | tuple[str, ...]) -> dict[str, dict[str, Any]]:
        """
        Fetch esummary documents.

        Returns:
            Dict mapping PMID -> summary dict (ids PubMed did not return are absent)
        """
        if not ids:
            return {}

        params = {"db": "pubmed", "id": ",".join(ids), "retmode": "json"}
        data = await self._request(ESUMMARY, params)

        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            logger.warning(f"esummary returned no 'result' for {len(ids)} ids")
            return {}

        return {pmid: result[pmid] for pmid in ids if isinstance(result.get(pmid), dict)}

    async def fetch_full_records(self, ids: list[str] | tuple[str, ...]) -> str:
        """
        Fetch full PubMed records as one XML document (single bulk efetch).

        Returns:
            Raw XML text; empty string for an empty id list
        """
        if not ids:
            return ""

        params = {"db": "pubmed", "id": ",".join(ids), "retmode": "xml"}
        return await self._request(EFETCH, params, expect_json=False)

    async def fetch_citation_counts(self, ids: list[str] | tuple[str, ...]) -> dict[str, int]:
        """
        Count citing articles per PMID via elink (``pubmed_pubmed_citedin``).

        Ids are sent in sequential batches of 10. A failed batch is logged
        and its ids count as 0; ids missing from a response also count as 0.

        Returns:
            Dict mapping every requested PMID -> citation count
        """
        counts: dict[str, int] = {pmid: 0 for pmid in ids}

        for start in range(0, len(ids), CITATION_BATCH_SIZE):
            batch = list(ids[start : start + CITATION_BATCH_SIZE])
            params = {
                "dbfrom": "pubmed",
                "db": "pubmed",
                "linkname": CITED_IN_LINKNAME,
                "retmode": "json",
                "id": batch,
            }
            try:
                data = await self._request(ELINK, params)
                counts.update(self._parse_citation_counts(data, batch))
            except Exception as e:
                error = EnrichmentError(batch, cause=e)
                logger.warning(f"{error}; counting them as 0")

        return counts

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Release the HTTP client if this instance created it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _parse_citation_counts(data: Any, batch: list[str]) -> dict[str, int]:
        counts: dict[str, int] = {}
        for linkset in data.get("linksets") or []:
            linkset_ids = linkset.get("ids") or []
            if not linkset_ids:
                continue
            pmid = str(linkset_ids[0])
            if pmid not in batch:
                continue
            links = 0
            for linksetdb in linkset.get("linksetdbs") or []:
                if linksetdb.get("linkname", CITED_IN_LINKNAME) == CITED_IN_LINKNAME:
                    links += len(linksetdb.get("links") or [])
            counts[pmid] = links
        return counts

    def _credentials(self) -> dict[str, str]:
        params = {"tool": self._settings.tool, "email": self._settings.email}
        if self._settings.api_key:
            params["api_key"] = self._settings.api_key
        return params

    async def _request(self, endpoint: str, params: dict[str, Any], *, expect_json: bool = True) -> Any:
        key = make_key(endpoint, params)
        cached = self._cache.get(key, MISS)
        if cached is not MISS:
            return cached

        full_params = {**params, **self._credentials()}
        response = await self._limiter.throttle(lambda: self._send(endpoint, full_params))

        if expect_json:
            try:
                payload = response.json()
            except ValueError as e:
                raise ResponseFormatError(f"{endpoint} returned invalid JSON: {e}", endpoint=endpoint) from e
        else:
            payload = response.text

        self._cache.set(key, payload)
        return payload

    async def _send(self, endpoint: str, params: dict[str, Any]) -> httpx.Response:
        url = f"{self._base_url}/{endpoint}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.exception(f"{endpoint} timed out")
            raise NetworkError(f"{endpoint} timed out: {e}", endpoint=endpoint) from e
        except httpx.RequestError as e:
            logger.exception(f"{endpoint} request failed: {e}")
            raise NetworkError(f"{endpoint} request failed: {e}", endpoint=endpoint) from e

        if response.is_success:
            return response

        status = response.status_code
        logger.error(f"{endpoint} HTTP error {status}: {response.reason_phrase}")
        if status == 429:
            raise RateLimitError(endpoint=endpoint, retry_after=_retry_after(response))
        if status >= 500:
            raise ServiceUnavailableError(
                f"{endpoint} returned HTTP {status}",
                endpoint=endpoint,
                status_code=status,
            )
        raise TransportError(
            f"{endpoint} returned HTTP {status}",
            endpoint=endpoint,
            status_code=status,
        )


def _retry_after(response: httpx.Response) -> float:
    value = response.headers.get("Retry-After")
    if value:
        try:
            return max(float(value), 0.0)
        except ValueError:
            pass
    return 1.0
