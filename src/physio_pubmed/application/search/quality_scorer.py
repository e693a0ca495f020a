"""
Quality Scorer - Heuristic Quality Rubric for Physical-Therapy Articles

Scores each ArticleRecord from its own fields only (no network, no
randomness), so the same record always gets the same metrics.

Rubric (default weights, total clamped to 0-100):
    abstract longer than 50 chars     +20
    at least one author               +15
    journal known                     +10  (+10 more if high-impact PT journal)
    published within 5 years          +10
    more than 5 citations             +15  (+5 more above 20)
    high-evidence design              +20  (RCT, SR, meta-analysis, clinical trial)
    DOI or PMID                       +10
    any MeSH terms                     +5  (+5 more if a PT MeSH term is present)

Example:
    scorer = QualityScorer(current_year=lambda: 2024)
    metrics = scorer.score(article)
    print(f"{metrics.score}/100 ({metrics.evidence_level.value})")
"""

from __future__ import annotations

import dataclasses
import datetime
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from physio_pubmed.domain.entities import ArticleRecord, EvidenceLevel, QualityMetrics, RiskLevel
from physio_pubmed.domain.entities.article import NO_ABSTRACT, UNKNOWN_JOURNAL

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration Constants
# =============================================================================


@dataclass(frozen=True)
class QualityWeights:
    """Points awarded per rubric criterion."""

    abstract: int = 20
    authors: int = 15
    journal: int = 10
    high_impact_journal: int = 10
    recent: int = 10
    cited: int = 15
    highly_cited: int = 5
    high_evidence: int = 20
    identifier: int = 10
    mesh: int = 5
    pt_mesh: int = 5


DEFAULT_WEIGHTS = QualityWeights()

MIN_ABSTRACT_LENGTH = 50
RECENT_YEARS = 5
CITED_THRESHOLD = 5
HIGHLY_CITED_THRESHOLD = 20

HIGH_IMPACT_JOURNALS: frozenset[str] = frozenset(
    {
        "Physical Therapy",
        "Journal of Physical Therapy Science",
        "Physiotherapy",
        "Archives of Physical Medicine and Rehabilitation",
        "Clinical Rehabilitation",
        "Disability and Rehabilitation",
        "Journal of Rehabilitation Medicine",
        "American Journal of Physical Medicine & Rehabilitation",
        "Physical Therapy in Sport",
        "Journal of Orthopaedic & Sports Physical Therapy",
        "Manual Therapy",
        "Musculoskeletal Science and Practice",
    }
)
_HIGH_IMPACT_LOWER = frozenset(name.lower() for name in HIGH_IMPACT_JOURNALS)

# Matched case-insensitively as substrings of MeSH descriptors
PT_MESH_KEYWORDS: tuple[str, ...] = (
    "Physical Therapy Modalities",
    "Physical Therapy Specialty",
    "Exercise Therapy",
    "Rehabilitation",
    "Manual Therapy",
    "Musculoskeletal Manipulations",
    "Range of Motion",
    "Strength Training",
)

HIGH_EVIDENCE_TYPES: tuple[str, ...] = (
    "randomized controlled trial",
    "meta-analysis",
    "systematic review",
    "clinical trial",
)

# Hierarchy order matters: the first match wins ties at the same rank
EVIDENCE_PATTERNS: tuple[tuple[EvidenceLevel, tuple[str, ...]], ...] = (
    (EvidenceLevel.SYSTEMATIC_REVIEW, ("systematic review",)),
    (EvidenceLevel.META_ANALYSIS, ("meta-analysis",)),
    (EvidenceLevel.RCT, ("randomized controlled trial",)),
    (EvidenceLevel.CLINICAL_TRIAL, ("clinical trial",)),
    (EvidenceLevel.COHORT, ("cohort",)),
    (EvidenceLevel.CASE_CONTROL, ("case-control",)),
    (EvidenceLevel.CROSS_SECTIONAL, ("cross-sectional",)),
    (EvidenceLevel.CASE_STUDY, ("case study", "case reports")),
)

# Abstract keywords that indicate direct relevance to PT practice
PT_PRACTICE_KEYWORDS: tuple[str, ...] = (
    "physical therapy",
    "physiotherapy",
    "exercise",
    "rehabilitation",
    "manual therapy",
)

_YEAR_SPLIT_RE = re.compile(r"[\s\-/]")


def _current_year() -> int:
    return datetime.date.today().year


def _publication_year(publication_date: str) -> int | None:
    token = _YEAR_SPLIT_RE.split(publication_date.strip(), maxsplit=1)[0]
    try:
        return int(token)
    except ValueError:
        return None


# =============================================================================
# QualityScorer
# =============================================================================


class QualityScorer:
    """
    Compute QualityMetrics for an ArticleRecord.

    Stateless apart from its configuration; safe to share across searches.
    """

    def __init__(
        self,
        weights: QualityWeights | None = None,
        current_year: Callable[[], int] = _current_year,
    ) -> None:
        """
        Initialize scorer.

        Args:
            weights: Points per criterion (default: DEFAULT_WEIGHTS)
            current_year: Clock used for the recency criterion
        """
        self.weights = weights or DEFAULT_WEIGHTS
        self._current_year = current_year

    def score(self, article: ArticleRecord) -> QualityMetrics:
        """
        Score one article.

        Args:
            article: Merged record (citation_count may be None)

        Returns:
            QualityMetrics with rubric score, evidence level, risk of bias,
            applicability, the met criteria and recommendations
        """
        w = self.weights
        citations = article.citation_count or 0
        has_journal = bool(article.journal) and article.journal != UNKNOWN_JOURNAL
        factors = {
            "hasAbstract": self._has_abstract(article),
            "hasAuthors": bool(article.authors),
            "hasJournal": has_journal,
            "hasRecentPublication": self.is_recent(article.publication_date),
            "hasHighCitations": citations > CITED_THRESHOLD,
            "isHighQualityStudy": is_high_evidence(article.publication_types),
            "hasDoiOrPmid": bool(article.doi or article.external_id),
        }
        evidence_level = evidence_level_for(article.publication_types)
        pt_mesh = has_pt_mesh(article.mesh_terms)

        total = 0
        recommendations: list[str] = []

        if factors["hasAbstract"]:
            total += w.abstract
        else:
            recommendations.append("Article lacks a comprehensive abstract")

        if factors["hasAuthors"]:
            total += w.authors
        else:
            recommendations.append("Author information is missing")

        if has_journal:
            total += w.journal
            if article.journal.lower() in _HIGH_IMPACT_LOWER:
                total += w.high_impact_journal
                recommendations.append(f"Published in high-impact journal: {article.journal}")
        else:
            recommendations.append("Journal information is missing")

        if factors["hasRecentPublication"]:
            total += w.recent
        else:
            recommendations.append("Consider more recent publications for current evidence")

        if factors["hasHighCitations"]:
            total += w.cited
            if citations > HIGHLY_CITED_THRESHOLD:
                total += w.highly_cited
                recommendations.append(f"Highly cited work ({citations} citations)")

        if factors["isHighQualityStudy"]:
            total += w.high_evidence
            if evidence_level.rank is not None:
                recommendations.append(
                    f"High-quality study design: {evidence_level.value} (Evidence Level {evidence_level.rank})"
                )
        else:
            recommendations.append("Consider studies with stronger research designs (RCTs, systematic reviews)")

        if factors["hasDoiOrPmid"]:
            total += w.identifier

        if article.mesh_terms:
            total += w.mesh
            if pt_mesh:
                total += w.pt_mesh
                recommendations.append("Contains relevant physical therapy MeSH terms")

        total = max(0, min(100, total))
        recommendations.insert(0, _score_band(total))

        return QualityMetrics(
            score=total,
            evidence_level=evidence_level,
            risk_of_bias=self.assess_risk_of_bias(article, evidence_level),
            applicability_score=self.assess_applicability(article, pt_mesh=pt_mesh),
            factors=factors,
            recommendations=tuple(recommendations),
        )

    def annotate(self, article: ArticleRecord) -> ArticleRecord:
        """Return a copy of ``article`` with ``quality`` set."""
        return dataclasses.replace(article, quality=self.score(article))

    def is_recent(self, publication_date: str) -> bool:
        """True when the leading year is within RECENT_YEARS of the current year."""
        year = _publication_year(publication_date or "")
        if year is None:
            return False
        return self._current_year() - year <= RECENT_YEARS

    # =========================================================================
    # Heuristic annotations
    # =========================================================================

    def assess_risk_of_bias(
        self,
        article: ArticleRecord,
        evidence_level: EvidenceLevel | None = None,
    ) -> dict[str, RiskLevel]:
        """
        Rate five bias dimensions from design and reporting cues.

        selection: randomized or pooled designs are Low, observational
            designs High, everything else Some concerns.
        performance: Low when the abstract mentions blinding.
        detection: Low when the abstract mentions blinded or masked assessment.
        attrition: Low when an intention-to-treat analysis is mentioned.
        reporting: Low with both an abstract and a DOI, High with neither.
        """
        level = evidence_level or evidence_level_for(article.publication_types)
        abstract = article.abstract_text.lower() if self._has_abstract(article) else ""

        rank = level.rank
        if rank is not None and rank <= 2:
            selection = RiskLevel.LOW
        elif rank is not None and rank >= 4:
            selection = RiskLevel.HIGH
        else:
            selection = RiskLevel.SOME_CONCERNS

        performance = RiskLevel.LOW if "blind" in abstract else RiskLevel.SOME_CONCERNS

        blinded_assessment = ("assessor" in abstract and "blind" in abstract) or "masked" in abstract
        detection = RiskLevel.LOW if blinded_assessment else RiskLevel.SOME_CONCERNS

        itt = "intention-to-treat" in abstract or "intention to treat" in abstract
        attrition = RiskLevel.LOW if itt else RiskLevel.SOME_CONCERNS

        reported = int(bool(abstract)) + int(bool(article.doi))
        reporting = {2: RiskLevel.LOW, 1: RiskLevel.SOME_CONCERNS}.get(reported, RiskLevel.HIGH)

        return {
            "selection": selection,
            "performance": performance,
            "detection": detection,
            "attrition": attrition,
            "reporting": reporting,
        }

    def assess_applicability(self, article: ArticleRecord, *, pt_mesh: bool | None = None) -> int:
        """
        Relevance to physical-therapy practice, 0-100.

        Starts at 50; +20 for a PT MeSH term, +10 when recent and +5 per
        PT keyword in the abstract (at most +20).
        """
        if pt_mesh is None:
            pt_mesh = has_pt_mesh(article.mesh_terms)

        value = 50
        if pt_mesh:
            value += 20
        if self.is_recent(article.publication_date):
            value += 10
        if self._has_abstract(article):
            abstract = article.abstract_text.lower()
            hits = sum(1 for keyword in PT_PRACTICE_KEYWORDS if keyword in abstract)
            value += min(20, 5 * hits)
        return max(0, min(100, value))

    @staticmethod
    def _has_abstract(article: ArticleRecord) -> bool:
        text = article.abstract_text or ""
        return text != NO_ABSTRACT and len(text) > MIN_ABSTRACT_LENGTH


# =============================================================================
# Helpers
# =============================================================================


def _reported_study_types(publication_types: tuple[str, ...] | list[str]) -> list[str]:
    # "Clinical Trial Protocol" describes a planned study, not its results
    return [pt.lower() for pt in publication_types if "protocol" not in pt.lower()]


def is_high_evidence(publication_types: tuple[str, ...] | list[str]) -> bool:
    """True if any publication type names an RCT, SR, meta-analysis or clinical trial."""
    lowered = _reported_study_types(publication_types)
    return any(marker in pt for pt in lowered for marker in HIGH_EVIDENCE_TYPES)


def evidence_level_for(publication_types: tuple[str, ...] | list[str]) -> EvidenceLevel:
    """Highest-ranked design among ``publication_types``; NOT_CLASSIFIED when none match."""
    lowered = _reported_study_types(publication_types)
    for level, patterns in EVIDENCE_PATTERNS:
        if any(pattern in pt for pt in lowered for pattern in patterns):
            return level
    return EvidenceLevel.NOT_CLASSIFIED


def has_pt_mesh(mesh_terms: tuple[str, ...] | list[str] | None) -> bool:
    """True if any MeSH descriptor contains a physical-therapy keyword."""
    if not mesh_terms:
        return False
    lowered = [term.lower() for term in mesh_terms]
    return any(keyword.lower() in term for term in lowered for keyword in PT_MESH_KEYWORDS)


def _score_band(score: int) -> str:
    if score < 40:
        return "Low quality score - use with caution"
    if score < 60:
        return "Moderate quality - acceptable for general reference"
    if score < 80:
        return "Good quality - reliable source"
    return "Excellent quality - highly recommended"
