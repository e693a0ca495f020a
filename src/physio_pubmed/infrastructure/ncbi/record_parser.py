"""
Record Parser - PubMed efetch XML and esummary JSON to ArticleRecord.

The efetch payload is treated as text: it is split into one region per
article and each region is scanned with independent regular expressions.
One malformed article never takes the rest of the batch down with it.

Record boundaries:
    A record starts at the ``<PMID>`` that opens a ``<MedlineCitation>``
    and runs to the next such marker (or the end of the payload). PMIDs
    quoted in comment/correction lists therefore stay inside their record.
    Payloads without a citation wrapper fall back to every ``<PMID>``.
"""

from __future__ import annotations

import datetime
import html
import logging
import re
from typing import Any

from physio_pubmed.domain.entities.article import (
    NO_ABSTRACT,
    PUBMED_ARTICLE_URL,
    UNKNOWN_DATE,
    UNKNOWN_JOURNAL,
    UNTITLED,
    ArticleRecord,
    PartialRecord,
)
from physio_pubmed.shared.exceptions import ParseError

logger = logging.getLogger(__name__)

_CITATION_PMID_RE = re.compile(r"<MedlineCitation\b[^>]*>\s*<PMID\b[^>]*>\s*(\d+)\s*</PMID>")
_PMID_RE = re.compile(r"<PMID\b[^>]*>\s*(\d+)\s*</PMID>")

_ABSTRACT_RE = re.compile(r"<AbstractText\b[^>]*(?<!/)>(.*?)</AbstractText>", re.DOTALL)
_DOI_RE = re.compile(r'<ArticleId\b[^>]*IdType="doi"[^>]*>(.*?)</ArticleId>', re.DOTALL)
_ELOCATION_DOI_RE = re.compile(
    r'<ELocationID\b[^>]*EIdType="doi"[^>]*>(.*?)</ELocationID>', re.DOTALL
)
_MESH_RE = re.compile(r"<DescriptorName\b[^>]*>(.*?)</DescriptorName>", re.DOTALL)
_PUBLICATION_TYPE_RE = re.compile(r"<PublicationType\b[^>]*>(.*?)</PublicationType>", re.DOTALL)

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}  # fmt: skip
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})(?:-(\d{1,2}))?")
_PUBMED_DATE_RE = re.compile(r"^(\d{4})(?:\s+([A-Za-z]{3})[A-Za-z]*)?(?:\s+(\d{1,2}))?\b")


# =============================================================================
# Full-record XML
# =============================================================================


def _clean_text(fragment: str) -> str:
    """Strip inner markup, unescape entities, collapse whitespace."""
    text = _TAG_RE.sub(" ", fragment)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _before(region: str, marker: str) -> str:
    index = region.find(marker)
    return region if index < 0 else region[:index]


def _record_regions(raw: str) -> dict[str, str]:
    markers = [(m.group(1), m.start()) for m in _CITATION_PMID_RE.finditer(raw)]
    if not markers:
        markers = [(m.group(1), m.start()) for m in _PMID_RE.finditer(raw)]

    regions: dict[str, str] = {}
    for index, (pmid, start) in enumerate(markers):
        end = markers[index + 1][1] if index + 1 < len(markers) else len(raw)
        # First occurrence wins if the payload repeats an article
        regions.setdefault(pmid, raw[start:end])
    return regions


def parse_region(region: str) -> PartialRecord:
    """
    Extract abstract, DOI, MeSH descriptors and publication types from one record.

    Fields whose elements are missing entirely stay None. Translated or
    publisher abstracts (``<OtherAbstract>``) and the identifiers of cited
    works (``<ReferenceList>``) are not part of the article's own fields.
    """
    main_abstract = _before(region, "<OtherAbstract")
    abstract_parts = [_clean_text(m) for m in _ABSTRACT_RE.findall(main_abstract)]
    abstract = " ".join(part for part in abstract_parts if part) if abstract_parts else None

    own_ids = _before(region, "<ReferenceList")
    doi = None
    doi_match = _DOI_RE.search(own_ids) or _ELOCATION_DOI_RE.search(own_ids)
    if doi_match:
        doi = _clean_text(doi_match.group(1)) or None

    mesh_terms = None
    if "<MeshHeadingList" in region:
        mesh_terms = tuple(
            term for term in (_clean_text(m) for m in _MESH_RE.findall(region)) if term
        )

    publication_types = None
    if "<PublicationType" in region:
        cleaned = (_clean_text(m) for m in _PUBLICATION_TYPE_RE.findall(region))
        publication_types = tuple(dict.fromkeys(t for t in cleaned if t))

    return PartialRecord(
        abstract_text=abstract,
        doi=doi,
        mesh_terms=mesh_terms,
        publication_types=publication_types,
    )


def parse(raw: str | None, ids: list[str] | tuple[str, ...]) -> dict[str, PartialRecord]:
    """
    Parse a bulk efetch XML payload.

    Args:
        raw: efetch response text (``retmode=xml``)
        ids: PubMed IDs that were requested

    Returns:
        Dict mapping PMID -> PartialRecord. IDs without a record in the
        payload, or whose record fails to parse, are absent. A payload
        that cannot be processed at all yields an empty dict.
    """
    if not raw or not ids:
        return {}

    try:
        regions = _record_regions(raw)
    except Exception as e:
        logger.warning(f"Failed to split efetch payload, continuing without full records: {e}")
        return {}

    records: dict[str, PartialRecord] = {}
    for pmid in ids:
        region = regions.get(str(pmid))
        if region is None:
            logger.debug(f"No full record for PMID {pmid}")
            continue
        try:
            records[str(pmid)] = parse_region(region)
        except Exception as e:
            error = ParseError(str(e), source=f"PMID {pmid}")
            logger.warning(str(error))

    logger.debug(f"Parsed {len(records)}/{len(ids)} full records")
    return records


# =============================================================================
# Summary merge
# =============================================================================


def _summary_doi(summary: dict[str, Any]) -> str | None:
    for article_id in summary.get("articleids") or []:
        if isinstance(article_id, dict) and article_id.get("idtype") == "doi":
            value = str(article_id.get("value") or "").strip()
            if value:
                return value
    return None


def merge_article(
    pmid: str,
    summary: dict[str, Any] | None,
    partial: PartialRecord | None = None,
    citation_count: int | None = None,
) -> ArticleRecord:
    """
    Combine an esummary entry and a parsed full record into an ArticleRecord.

    Missing summary fields fall back to fixed placeholders so every hit
    is renderable.
    """
    summary = summary or {}
    partial = partial or PartialRecord()

    authors = tuple(
        str(author["name"]).strip()
        for author in summary.get("authors") or []
        if isinstance(author, dict) and author.get("name")
    )
    journal = (
        str(summary.get("fulljournalname") or "").strip()
        or str(summary.get("source") or "").strip()
        or UNKNOWN_JOURNAL
    )

    return ArticleRecord(
        external_id=str(pmid),
        title=html.unescape(str(summary.get("title") or "").strip()) or UNTITLED,
        authors=authors,
        journal=journal,
        publication_date=str(summary.get("pubdate") or "").strip() or UNKNOWN_DATE,
        abstract_text=partial.abstract_text or NO_ABSTRACT,
        canonical_url=PUBMED_ARTICLE_URL.format(pmid=pmid),
        citation_count=citation_count,
        doi=partial.doi or _summary_doi(summary),
        publication_types=partial.publication_types or (),
        mesh_terms=partial.mesh_terms or None,
    )


# =============================================================================
# Dates
# =============================================================================


def parse_publication_date(value: str | None) -> datetime.date | None:
    """
    Parse PubMed's free-form publication date.

    Accepts ``2023``, ``2023 Jan``, ``2023 Jan 15``, ``2023 Jan-Feb`` and
    ISO ``2023-01-15``. Missing month/day default to 1.

    Returns:
        A date, or None if no year can be read
    """
    if not value:
        return None
    value = value.strip()

    iso = _ISO_DATE_RE.match(value)
    if iso:
        year, month, day = int(iso.group(1)), int(iso.group(2)), int(iso.group(3) or 1)
    else:
        match = _PUBMED_DATE_RE.match(value)
        if not match:
            return None
        year = int(match.group(1))
        month = _MONTHS.get((match.group(2) or "").lower(), 1)
        day = int(match.group(3)) if match.group(3) and match.group(2) else 1

    try:
        return datetime.date(year, month, day)
    except ValueError:
        try:
            return datetime.date(year, month, 1)
        except ValueError:
            return None
