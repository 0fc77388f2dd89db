"""Core evaluation engine components."""

from __future__ import annotations

from typing import Any, AsyncIterator, Mapping, Protocol, runtime_checkable

from ..schemas.extraction import Dimension
from ..schemas.filters import FilterCriteria
from ..schemas.profile import CandidateProfile, ProfileReference, StageContext


@runtime_checkable
class ProfileExtractor(Protocol):
    """Collaborator computing raw attributes of one dimension for a profile.

    Implementations raise the classified errors from :mod:`profileeval.errors`
    on failure.
    """

    async def extract(
        self,
        dimension: Dimension,
        reference: ProfileReference,
        context: StageContext | None,
    ) -> Mapping[str, Any]:
        """Return a JSON-like mapping for the dimension's result model."""


@runtime_checkable
class CandidateDiscovery(Protocol):
    """Collaborator yielding candidate profiles for a set of filters."""

    def discover(self, criteria: FilterCriteria, limit: int) -> AsyncIterator[CandidateProfile]:
        """Yield at most ``limit`` candidates lazily."""


# NOTE: keep imports explicit for export clarity.
from .filters import passes_filter  # noqa: E402
from .limits import CallLimiter  # noqa: E402
from .orchestrator import EvaluationOrchestrator, EvaluationResult  # noqa: E402
from .scoring import DimensionScore, ScoreBreakdown, ScoringEngine, ScoringPolicy  # noqa: E402
from .search import (  # noqa: E402
    CandidateFilterPipeline,
    CandidateResult,
    SearchOutcome,
    SearchSummary,
)
from .stages import (  # noqa: E402
    CodeStage,
    EducationStage,
    ExtractionStage,
    PatentsStage,
    PublicationsStage,
    StagePolicy,
    WorkExperienceStage,
)

__all__ = [
    "ProfileExtractor",
    "CandidateDiscovery",
    "CallLimiter",
    "ExtractionStage",
    "StagePolicy",
    "EducationStage",
    "PublicationsStage",
    "PatentsStage",
    "CodeStage",
    "WorkExperienceStage",
    "ScoringEngine",
    "ScoringPolicy",
    "ScoreBreakdown",
    "DimensionScore",
    "passes_filter",
    "EvaluationOrchestrator",
    "EvaluationResult",
    "CandidateFilterPipeline",
    "CandidateResult",
    "SearchOutcome",
    "SearchSummary",
]
