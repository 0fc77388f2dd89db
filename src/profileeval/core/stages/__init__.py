"""Per-dimension extraction stages."""

from __future__ import annotations

from .base import ExtractionStage, StagePolicy
from .code import CodeStage
from .education import EducationStage
from .patents import PatentsStage
from .publications import PublicationsStage, experience_bracket
from .work_experience import WorkExperienceStage

__all__ = [
    "ExtractionStage",
    "StagePolicy",
    "EducationStage",
    "PublicationsStage",
    "PatentsStage",
    "CodeStage",
    "WorkExperienceStage",
    "experience_bracket",
]
