"""Typed per-dimension extraction results with neutral defaults."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

StageStatus = Literal["success", "degraded", "critical", "skipped"]
ExperienceBracket = Literal["0-3", "4-7", "8-10", "10+"]

TOP_INSTITUTE_TIER = "Top Institute (QS <300)"
OTHER_INSTITUTE_TIER = "Other Institute (QS >300)"


def wire_alias(name: str) -> str:
    """camelCase wire name, keeping the "AI" acronym upper-case."""
    return to_camel(name).replace("Ai", "AI")


class Dimension(str, Enum):
    """The five evaluated dimensions, in evaluation order."""

    EDUCATION = "education"
    PUBLICATIONS = "publications"
    PATENTS = "patents"
    CODE = "code"
    WORK_EXPERIENCE = "work_experience"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()

    @property
    def external_key(self) -> str:
        """Key used for the dimension in external payloads."""
        return _EXTERNAL_KEYS[self]


_EXTERNAL_KEYS = {
    Dimension.EDUCATION: "education",
    Dimension.PUBLICATIONS: "publications",
    Dimension.PATENTS: "patents",
    Dimension.CODE: "github",
    Dimension.WORK_EXPERIENCE: "workExperience",
}

DIMENSION_ORDER: tuple[Dimension, ...] = (
    Dimension.EDUCATION,
    Dimension.PUBLICATIONS,
    Dimension.PATENTS,
    Dimension.CODE,
    Dimension.WORK_EXPERIENCE,
)


class ExtractionResult(BaseModel):
    """Base for all dimension results.

    Every field has a neutral default, so a result built with no arguments is
    the documented fallback for the dimension.
    """

    error: str | None = None
    status: StageStatus = "success"

    model_config = ConfigDict(
        alias_generator=wire_alias,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    @classmethod
    def neutral(cls, *, error: str | None = None, status: StageStatus = "degraded"):
        return cls(error=error, status=status)

    def cache_payload(self) -> dict[str, Any]:
        """Serializable attributes without per-run status fields."""
        return self.model_dump(mode="json", by_alias=True, exclude={"error", "status"})

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EducationResult(ExtractionResult):
    """Highest degree with field of study and institute tier."""

    name: str = ""
    degree: str = ""
    field_of_study: str = ""
    institute: str = ""
    institute_tier: str = OTHER_INSTITUTE_TIER

    @field_validator("name", "degree", "field_of_study", "institute", mode="before")
    @classmethod
    def _blank_unknown(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str) and value.strip().lower() in {"unknown", "n/a", "none"}:
            return ""
        return value

    @field_validator("institute_tier", mode="before")
    @classmethod
    def _normalize_tier(cls, value: Any) -> str:
        if not value:
            return OTHER_INSTITUTE_TIER
        text = str(value)
        if "<300" in text or text.lower().startswith("top"):
            return TOP_INSTITUTE_TIER
        if ">300" in text or text.lower().startswith("other"):
            return OTHER_INSTITUTE_TIER
        return text

    @property
    def is_top_institute(self) -> bool:
        return self.institute_tier == TOP_INSTITUTE_TIER


class VenueQuality(BaseModel):
    """Best venue classes the author has published in."""

    has_top_ai_conference: bool = False
    has_other_ai_conference: bool = False
    has_reputable_journal: bool = False
    has_other_peer_reviewed: bool = False

    model_config = ConfigDict(
        alias_generator=wire_alias,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class PublicationsResult(ExtractionResult):
    """Bibliometric summary for an author."""

    number_of_publications: int = Field(default=0, ge=0)
    citations: int = Field(default=0, ge=0)
    h_index: int = Field(default=0, ge=0)
    experience_bracket: ExperienceBracket = "0-3"
    first_publication_year: int = Field(default=0, ge=0)
    venue_quality: VenueQuality = Field(default_factory=VenueQuality)
    venues: list[str] = Field(default_factory=list)


class PatentsResult(ExtractionResult):
    """Patent counts split by inventor role."""

    granted_first_inventor_count: int = Field(default=0, ge=0)
    granted_co_inventor_count: int = Field(default=0, ge=0)
    filed_patent_count: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_flags(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        counts = data.pop("counts", None)
        if isinstance(counts, dict):
            for key, value in counts.items():
                data.setdefault(key, value)
        legacy = {
            "grantedFirstInventor": "grantedFirstInventorCount",
            "grantedCoInventor": "grantedCoInventorCount",
            "filedPatent": "filedPatentCount",
        }
        for flag, count_key in legacy.items():
            if flag in data:
                flag_value = data.pop(flag)
                snake = _snake(count_key)
                if count_key not in data and snake not in data:
                    data[count_key] = 1 if flag_value else 0
        return data

    @property
    def granted_first_inventor(self) -> bool:
        return self.granted_first_inventor_count > 0

    @property
    def granted_co_inventor(self) -> bool:
        return self.granted_co_inventor_count > 0

    @property
    def filed_patent(self) -> bool:
        return self.filed_patent_count > 0


class CodeResult(ExtractionResult):
    """Code-hosting activity summary."""

    username: str = ""
    repo_volume: int = Field(default=0, ge=0)
    repo_initiative: int = Field(default=0, ge=0)
    recent_activity: int = Field(default=0, ge=0)
    popularity: int = Field(default=0, ge=0)
    ai_relevance: bool = False

    @model_validator(mode="before")
    @classmethod
    def _unwrap_analysis(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        merged = dict(data)
        analysis = merged.pop("analysis", None)
        if isinstance(analysis, dict):
            for key, value in analysis.items():
                merged.setdefault(key, value)
        github_username = merged.pop("githubUsername", None)
        if github_username and not merged.get("username"):
            merged["username"] = github_username
        return merged


class WorkExperienceResult(ExtractionResult):
    """Recruiter-style assessment of professional experience."""

    top_ai_organizations: bool = False
    impact_quality: int = 0
    mentorship_role: bool = False
    dl_frameworks: bool = False
    years_of_experience: float = Field(default=0.0, ge=0.0)
    reasoning: str = ""

    @field_validator("impact_quality", mode="before")
    @classmethod
    def _clamp_impact(cls, value: Any) -> int:
        if value is None or value is False:
            return 0
        return max(0, min(int(value), 4))


RESULT_TYPES: dict[Dimension, type[ExtractionResult]] = {
    Dimension.EDUCATION: EducationResult,
    Dimension.PUBLICATIONS: PublicationsResult,
    Dimension.PATENTS: PatentsResult,
    Dimension.CODE: CodeResult,
    Dimension.WORK_EXPERIENCE: WorkExperienceResult,
}


class ExtractionSet(BaseModel):
    """The five results of one evaluation; absent members are neutral."""

    education: EducationResult = Field(default_factory=EducationResult)
    publications: PublicationsResult = Field(default_factory=PublicationsResult)
    patents: PatentsResult = Field(default_factory=PatentsResult)
    code: CodeResult = Field(default_factory=CodeResult)
    work_experience: WorkExperienceResult = Field(default_factory=WorkExperienceResult)

    model_config = ConfigDict(
        alias_generator=wire_alias,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_external_keys(cls, data: Any) -> Any:
        if isinstance(data, dict) and "github" in data and "code" not in data:
            data = dict(data)
            data["code"] = data.pop("github")
        return data

    @classmethod
    def from_results(cls, results: dict[Dimension, ExtractionResult]) -> "ExtractionSet":
        missing = {
            dimension.value: RESULT_TYPES[dimension].neutral(status="skipped")
            for dimension in DIMENSION_ORDER
            if dimension not in results
        }
        present = {dimension.value: result for dimension, result in results.items()}
        return cls(**present, **missing)

    def get(self, dimension: Dimension) -> ExtractionResult:
        return getattr(self, dimension.value)

    def to_payload(self) -> dict[str, Any]:
        return {
            dimension.external_key: self.get(dimension).to_payload()
            for dimension in DIMENSION_ORDER
        }


def _snake(name: str) -> str:
    return "".join(f"_{ch.lower()}" if ch.isupper() else ch for ch in name)


__all__ = [
    "wire_alias",
    "Dimension",
    "DIMENSION_ORDER",
    "StageStatus",
    "ExperienceBracket",
    "TOP_INSTITUTE_TIER",
    "OTHER_INSTITUTE_TIER",
    "ExtractionResult",
    "EducationResult",
    "VenueQuality",
    "PublicationsResult",
    "PatentsResult",
    "CodeResult",
    "WorkExperienceResult",
    "RESULT_TYPES",
    "ExtractionSet",
]
