"""Filter criteria for the candidate filter pipeline.

Criteria arrive from forms and config files where thresholds are often
strings; they are coerced here once so predicates only ever see typed values.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .extraction import DIMENSION_ORDER, Dimension, ExperienceBracket, wire_alias


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class DimensionFilter(BaseModel):
    """Common switch shared by all per-dimension filters."""

    enabled: bool = False

    model_config = ConfigDict(
        alias_generator=wire_alias,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class EducationFilter(DimensionFilter):
    degree: str | None = None
    field_of_study: str | None = None
    institute: str | None = None
    institute_tier: str | None = None

    @field_validator("degree", "field_of_study", "institute", "institute_tier", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value


class PublicationsFilter(DimensionFilter):
    min_publications: int | None = Field(default=None, ge=0)
    min_citations: int | None = Field(default=None, ge=0)
    min_h_index: int | None = Field(default=None, ge=0)
    has_top_ai_conferences: bool = False
    has_other_ai_conferences: bool = False
    has_reputable_journals: bool = False
    has_other_journals: bool = False
    experience_bracket: ExperienceBracket | None = None

    @field_validator(
        "min_publications", "min_citations", "min_h_index", "experience_bracket", mode="before"
    )
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class PatentsFilter(DimensionFilter):
    granted_first_inventor: bool = False
    granted_co_inventor: bool = False
    filed_patent: bool = False


class CodeFilter(DimensionFilter):
    min_repositories: int | None = Field(default=None, ge=0)
    min_original_repositories: int | None = Field(default=None, ge=0)
    min_stars: int | None = Field(default=None, ge=0)
    require_recent_activity: bool = False
    require_ai_relevance: bool = False

    @field_validator("min_repositories", "min_original_repositories", "min_stars", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class WorkExperienceFilter(DimensionFilter):
    require_top_ai_organization: bool = False
    require_mentorship: bool = False
    require_dl_frameworks: bool = False
    min_impact_quality: int | None = Field(default=None, ge=0, le=4)
    min_years_of_experience: float | None = Field(default=None, ge=0.0)

    @field_validator("min_impact_quality", "min_years_of_experience", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class FilterCriteria(BaseModel):
    """Per-dimension filters for one pipeline run."""

    education: EducationFilter = Field(default_factory=EducationFilter)
    publications: PublicationsFilter = Field(default_factory=PublicationsFilter)
    patents: PatentsFilter = Field(default_factory=PatentsFilter)
    code: CodeFilter = Field(
        default_factory=CodeFilter,
        validation_alias="github",
    )
    work_experience: WorkExperienceFilter = Field(
        default_factory=WorkExperienceFilter,
        validation_alias="workExperience",
    )

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def for_dimension(self, dimension: Dimension) -> DimensionFilter:
        return getattr(self, dimension.value)

    def enabled_dimensions(self) -> list[Dimension]:
        return [d for d in DIMENSION_ORDER if self.for_dimension(d).enabled]


__all__ = [
    "DimensionFilter",
    "EducationFilter",
    "PublicationsFilter",
    "PatentsFilter",
    "CodeFilter",
    "WorkExperienceFilter",
    "FilterCriteria",
]
