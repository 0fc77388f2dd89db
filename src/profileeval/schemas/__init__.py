"""Pydantic schema definitions for evaluation data structures."""

from __future__ import annotations

from .extraction import (
    DIMENSION_ORDER,
    CodeResult,
    Dimension,
    EducationResult,
    ExtractionResult,
    ExtractionSet,
    PatentsResult,
    PublicationsResult,
    RESULT_TYPES,
    VenueQuality,
    WorkExperienceResult,
)
from .filters import FilterCriteria
from .profile import CandidateProfile, ProfileReference, StageContext
from .requests import EvaluationRequest, SearchRequest
from .weights import DEFAULT_WEIGHTS, WeightVector

__all__ = [
    "DIMENSION_ORDER",
    "Dimension",
    "ExtractionResult",
    "EducationResult",
    "PublicationsResult",
    "VenueQuality",
    "PatentsResult",
    "CodeResult",
    "WorkExperienceResult",
    "RESULT_TYPES",
    "ExtractionSet",
    "FilterCriteria",
    "ProfileReference",
    "StageContext",
    "CandidateProfile",
    "EvaluationRequest",
    "SearchRequest",
    "WeightVector",
    "DEFAULT_WEIGHTS",
]
