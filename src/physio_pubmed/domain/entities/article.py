"""
Article entities produced by a PubMed search.

An ArticleRecord is assembled once per search from the summary and
full-record payloads, annotated with QualityMetrics, and then never
changed again. Nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

PUBMED_ARTICLE_URL = "https://pubmed.ncbi.nlm.nih.gov/{pmid}/"

# Placeholders for fields PubMed did not return
UNTITLED = "Untitled"
UNKNOWN_JOURNAL = "Unknown Journal"
UNKNOWN_DATE = "Unknown"
NO_ABSTRACT = "Abstract not available"


class EvidenceLevel(str, Enum):
    """Study-design label, highest matching type in the evidence hierarchy."""

    SYSTEMATIC_REVIEW = "Systematic Review"
    META_ANALYSIS = "Meta-Analysis"
    RCT = "Randomized Controlled Trial"
    CLINICAL_TRIAL = "Clinical Trial"
    COHORT = "Cohort Study"
    CASE_CONTROL = "Case-Control Study"
    CROSS_SECTIONAL = "Cross-Sectional Study"
    CASE_STUDY = "Case Study"
    NOT_CLASSIFIED = "Not Classified"

    @property
    def rank(self) -> int | None:
        """1 is the strongest design; None when not classified."""
        return EVIDENCE_RANKS.get(self)


EVIDENCE_RANKS: dict[EvidenceLevel, int] = {
    EvidenceLevel.SYSTEMATIC_REVIEW: 1,
    EvidenceLevel.META_ANALYSIS: 1,
    EvidenceLevel.RCT: 2,
    EvidenceLevel.CLINICAL_TRIAL: 3,
    EvidenceLevel.COHORT: 4,
    EvidenceLevel.CASE_CONTROL: 5,
    EvidenceLevel.CROSS_SECTIONAL: 6,
    EvidenceLevel.CASE_STUDY: 7,
}


class RiskLevel(str, Enum):
    """Qualitative risk-of-bias rating for one dimension."""

    LOW = "Low"
    SOME_CONCERNS = "Some concerns"
    HIGH = "High"


BIAS_DIMENSIONS = ("selection", "performance", "detection", "attrition", "reporting")


@dataclass(frozen=True)
class QualityMetrics:
    """
    Heuristic quality annotation for one article.

    Attributes:
        score: Weighted rubric total, clamped to 0-100
        evidence_level: Highest-ranked study design found in publication types
        risk_of_bias: Rating per bias dimension (see BIAS_DIMENSIONS)
        applicability_score: Relevance to physical-therapy practice, 0-100
        factors: Which rubric criteria the article met
        recommendations: Reader-facing notes on the score
    """

    score: int
    evidence_level: EvidenceLevel
    risk_of_bias: dict[str, RiskLevel] = field(default_factory=dict)
    applicability_score: int = 0
    factors: dict[str, bool] = field(default_factory=dict)
    recommendations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "score": self.score,
            "evidenceLevel": self.evidence_level.value,
            "riskOfBias": {name: level.value for name, level in self.risk_of_bias.items()},
            "applicabilityScore": self.applicability_score,
            "factors": dict(self.factors),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class PartialRecord:
    """
    Fields extracted from one article's full-record XML.

    None means the element was not found at all; an empty string or
    tuple means it was found but empty.
    """

    abstract_text: str | None = None
    doi: str | None = None
    mesh_terms: tuple[str, ...] | None = None
    publication_types: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ArticleRecord:
    """
    One search hit, merged from summary and full-record payloads.

    Attributes:
        external_id: PubMed ID
        title: Article title
        authors: Author names in byline order
        journal: Full journal name (or abbreviation when that is all we have)
        publication_date: Free-form date string as reported by PubMed
        abstract_text: Abstract, or a placeholder when none exists
        citation_count: Citing-article count; None when not requested
        doi: DOI without resolver prefix
        publication_types: De-duplicated publication-type labels
        mesh_terms: MeSH descriptor names; None when the record has none
        canonical_url: PubMed landing page
        quality: Quality annotation, set once after scoring
    """

    external_id: str
    title: str
    authors: tuple[str, ...]
    journal: str
    publication_date: str
    abstract_text: str
    canonical_url: str
    citation_count: int | None = None
    doi: str | None = None
    publication_types: tuple[str, ...] = ()
    mesh_terms: tuple[str, ...] | None = None
    quality: QualityMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.external_id,
            "pmid": self.external_id,
            "title": self.title,
            "authors": list(self.authors),
            "journal": self.journal,
            "publicationDate": self.publication_date,
            "abstract": self.abstract_text,
            "citationCount": self.citation_count,
            "doi": self.doi,
            "publicationTypes": list(self.publication_types),
            "meshTerms": list(self.mesh_terms) if self.mesh_terms is not None else None,
            "url": self.canonical_url,
            "quality": self.quality.to_dict() if self.quality else None,
        }
