"""Deterministic weighted scoring of extracted profile dimensions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

import pydantic
import structlog

from ..schemas.extraction import (
    DIMENSION_ORDER,
    CodeResult,
    Dimension,
    EducationResult,
    ExtractionSet,
    PatentsResult,
    PublicationsResult,
    WorkExperienceResult,
)
from ..schemas.weights import DEFAULT_WEIGHTS, WeightVector

# Points for (related field, top institute), (related, other),
# (unrelated, top), (unrelated, other).
_EDUCATION_TABLE: dict[str, tuple[int, int, int, int]] = {
    "phd": (10, 8, 6, 4),
    "pursuing_phd": (8, 6, 4, 4),
    "bachelor_master": (10, 6, 4, 4),
    "master": (8, 5, 3, 3),
    "bachelor": (5, 3, 2, 2),
}

_AI_CS_FIELDS: tuple[str, ...] = (
    "artificial intelligence",
    "machine learning",
    "computer science",
    "data science",
    "electrical engineering",
    "computer engineering",
    "mathematics",
    "statistics",
    "computational linguistics",
    "robotics",
    "computer vision",
    "natural language processing",
    "neural networks",
    "deep learning",
    "information science",
    "software engineering",
    "information technology",
    "applied mathematics",
    "computational biology",
    "bioinformatics",
)
_AI_CS_ACRONYMS = re.compile(r"\b(ai|ml|cs|ece|nlp)\b")


@dataclass
class ScoringPolicy:
    """Tunable tables behind the scoring rules."""

    h_index_thresholds: dict[str, tuple[tuple[int, int], ...]] = field(
        default_factory=lambda: {
            "0-3": ((4, 5), (2, 3), (1, 1)),
            "4-7": ((12, 5), (6, 3), (3, 1)),
            "8-10": ((24, 5), (12, 3), (6, 1)),
            "10+": ((40, 5), (20, 3), (10, 1)),
        }
    )
    grade_bands: tuple[tuple[float, str], ...] = (
        (90.0, "A+"),
        (80.0, "A"),
        (70.0, "B"),
        (60.0, "C"),
        (50.0, "D"),
    )
    top_conference_citations: int = 30
    code_native_max: float = 16.0
    dimension_max: float = 10.0
    default_weights: WeightVector = DEFAULT_WEIGHTS


@dataclass(slots=True, frozen=True)
class DimensionScore:
    raw: float
    normalized: float
    weight: float
    weighted: float

    def to_payload(self) -> dict[str, float]:
        return {
            "raw": self.raw,
            "normalized": self.normalized,
            "weight": self.weight,
            "weighted": self.weighted,
        }


@dataclass(slots=True, frozen=True)
class ScoreBreakdown:
    """Composite score with per-dimension detail."""

    dimensions: dict[Dimension, DimensionScore]
    total_score: float
    max_possible_score: float
    percentage: float
    grade: str
    weights: WeightVector
    weights_substituted: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "totalScore": self.total_score,
            "maxPossibleScore": self.max_possible_score,
            "percentage": self.percentage,
            "grade": self.grade,
            "breakdown": {
                dimension.external_key: score.to_payload()
                for dimension, score in self.dimensions.items()
            },
            "weights": self.weights.to_payload(),
            "weightsSubstituted": self.weights_substituted,
        }


class ScoringEngine:
    """Pure scoring over an :class:`ExtractionSet`.

    Weight vectors that fail validation or do not sum to one are replaced by
    the policy default and flagged, never renormalized.
    """

    def __init__(
        self,
        *,
        policy: ScoringPolicy | None = None,
        weights: WeightVector | Mapping[str, Any] | None = None,
    ) -> None:
        self._policy = policy or ScoringPolicy()
        self._default_weights = weights
        self._logger = structlog.get_logger(__name__)

    def score(
        self,
        extractions: ExtractionSet,
        weights: WeightVector | Mapping[str, Any] | None = None,
    ) -> ScoreBreakdown:
        requested = weights if weights is not None else self._default_weights
        vector, substituted = self.resolve_weights(requested)

        raw_scores = {
            Dimension.EDUCATION: self.education_score(extractions.education),
            Dimension.PUBLICATIONS: self.publications_score(extractions.publications),
            Dimension.PATENTS: self.patents_score(extractions.patents),
            Dimension.CODE: self.code_score(extractions.code),
            Dimension.WORK_EXPERIENCE: self.work_experience_score(extractions.work_experience),
        }

        dimensions: dict[Dimension, DimensionScore] = {}
        for dimension in DIMENSION_ORDER:
            raw = float(raw_scores[dimension])
            normalized = self._normalize(dimension, raw)
            weight = vector.for_dimension(dimension)
            dimensions[dimension] = DimensionScore(
                raw=raw,
                normalized=normalized,
                weight=weight,
                weighted=normalized * weight,
            )

        total = sum(score.weighted for score in dimensions.values())
        max_possible = round(self._policy.dimension_max * vector.total, 6)
        percentage = round(total / max_possible * 100, 6) if max_possible > 0 else 0.0
        return ScoreBreakdown(
            dimensions=dimensions,
            total_score=total,
            max_possible_score=max_possible,
            percentage=percentage,
            grade=self.grade_for(percentage),
            weights=vector,
            weights_substituted=substituted,
        )

    def resolve_weights(
        self, weights: WeightVector | Mapping[str, Any] | None
    ) -> tuple[WeightVector, bool]:
        """Return the vector to score with and whether the default replaced it."""
        default = self._policy.default_weights
        if weights is None:
            return default, False
        try:
            vector = (
                weights
                if isinstance(weights, WeightVector)
                else WeightVector.model_validate(weights)
            )
        except pydantic.ValidationError as exc:
            self._logger.warning(
                "scoring.weights_substituted",
                reason="invalid",
                errors=exc.error_count(),
            )
            return default, True
        if not vector.is_balanced:
            self._logger.warning(
                "scoring.weights_substituted",
                reason="unbalanced",
                total=vector.total,
            )
            return default, True
        return vector, False

    def grade_for(self, percentage: float) -> str:
        for lower_bound, grade in self._policy.grade_bands:
            if percentage >= lower_bound:
                return grade
        return "F"

    def education_score(self, education: EducationResult) -> int:
        degree = education.degree.lower().strip()
        if not degree:
            return 0
        degree_class = _degree_class(degree)
        if degree_class is None:
            return 1
        related = is_ai_cs_field(education.field_of_study)
        top = education.is_top_institute
        column = (0 if top else 1) if related else (2 if top else 3)
        return _EDUCATION_TABLE[degree_class][column]

    def publications_score(self, publications: PublicationsResult) -> int:
        venue = publications.venue_quality
        if venue.has_top_ai_conference:
            venue_points = (
                5 if publications.citations >= self._policy.top_conference_citations else 3
            )
        elif venue.has_other_ai_conference:
            venue_points = 2
        elif venue.has_reputable_journal:
            venue_points = 4
        elif venue.has_other_peer_reviewed:
            venue_points = 1
        else:
            venue_points = 0
        h_points = self.h_index_score(publications.h_index, publications.experience_bracket)
        return min(venue_points + h_points, 10)

    def h_index_score(self, h_index: int, bracket: str) -> int:
        thresholds = self._policy.h_index_thresholds.get(
            bracket, self._policy.h_index_thresholds["0-3"]
        )
        for minimum, points in thresholds:
            if h_index >= minimum:
                return points
        return 0

    @staticmethod
    def patents_score(patents: PatentsResult) -> int:
        first = patents.granted_first_inventor_count
        co = patents.granted_co_inventor_count
        if first >= 3:
            return 10
        if first == 2:
            return 8
        if first == 1:
            return 6
        if co >= 3:
            return 8
        if co == 2:
            return 6
        if co == 1:
            return 4
        if patents.filed_patent_count > 0:
            return 2
        return 0

    def code_score(self, code: CodeResult) -> int:
        score = 0
        if code.repo_volume > 5:
            score += 3
        if code.repo_initiative > 3:
            score += 3
        if code.recent_activity > 0:
            score += 3
        if code.popularity > 50:
            score += 4
        elif code.popularity > 20:
            score += 2
        if code.ai_relevance:
            score += 3
        return min(score, int(self._policy.code_native_max))

    @staticmethod
    def work_experience_score(work: WorkExperienceResult) -> int:
        score = 0
        if work.top_ai_organizations:
            score += 2
        score += min(work.impact_quality, 4)
        if work.mentorship_role:
            score += 2
        if work.dl_frameworks:
            score += 2
        return min(score, 10)

    def _normalize(self, dimension: Dimension, raw: float) -> float:
        if dimension is Dimension.CODE:
            return raw / self._policy.code_native_max * self._policy.dimension_max
        return raw


def _degree_class(degree: str) -> str | None:
    is_phd = "phd" in degree or "ph.d" in degree or "doctor" in degree
    if "pursuing" in degree or "candidate" in degree or "student" in degree:
        if is_phd:
            return "pursuing_phd"
    if is_phd:
        return "phd"
    is_master = "master" in degree or re.search(r"\bm\.?sc?\b|\bm\.?tech\b", degree) is not None
    is_bachelor = (
        "bachelor" in degree
        or re.search(r"\bb\.?sc?\b|\bb\.?tech\b|\bb\.?e\b", degree) is not None
    )
    if is_master and is_bachelor:
        return "bachelor_master"
    if is_master:
        return "master"
    if is_bachelor:
        return "bachelor"
    return None


def is_ai_cs_field(field_of_study: str) -> bool:
    text = field_of_study.lower()
    if not text.strip():
        return False
    if any(term in text for term in _AI_CS_FIELDS):
        return True
    return _AI_CS_ACRONYMS.search(text) is not None


__all__ = [
    "ScoringEngine",
    "ScoringPolicy",
    "ScoreBreakdown",
    "DimensionScore",
    "is_ai_cs_field",
]
