"""Weight vector controlling each dimension's share of the composite score."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .extraction import Dimension

WEIGHT_SUM_TOLERANCE = 0.01


class WeightVector(BaseModel):
    """Five nonnegative weights. Valid for scoring when they sum to 1 +- 0.01."""

    education: float = Field(default=0.25, ge=0.0)
    patents: float = Field(default=0.15, ge=0.0)
    publications: float = Field(default=0.30, ge=0.0)
    work_experience: float = Field(
        default=0.30,
        ge=0.0,
        validation_alias=AliasChoices("work_experience", "workExperience"),
        serialization_alias="workExperience",
    )
    code: float = Field(
        default=0.0,
        ge=0.0,
        validation_alias=AliasChoices("code", "github"),
        serialization_alias="github",
    )

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @property
    def total(self) -> float:
        return (
            self.education
            + self.patents
            + self.publications
            + self.work_experience
            + self.code
        )

    @property
    def is_balanced(self) -> bool:
        return abs(self.total - 1.0) <= WEIGHT_SUM_TOLERANCE

    def for_dimension(self, dimension: Dimension) -> float:
        return getattr(self, dimension.value)

    def to_payload(self) -> dict[str, float]:
        return self.model_dump(by_alias=True)


DEFAULT_WEIGHTS = WeightVector()


__all__ = ["WeightVector", "DEFAULT_WEIGHTS", "WEIGHT_SUM_TOLERANCE"]
