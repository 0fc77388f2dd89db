"""Request models validated at the service boundary."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .extraction import wire_alias
from .filters import FilterCriteria
from .profile import ProfileReference
from .weights import WeightVector

ProcessingMethod = Literal["sequential", "parallel"]


class EvaluationRequest(BaseModel):
    """Single-profile evaluation request."""

    name: str = ""
    document_text: str | None = None
    external_profile_id: str | None = None
    github_username: str | None = None
    weights: WeightVector | None = None

    model_config = ConfigDict(alias_generator=wire_alias, populate_by_name=True, extra="forbid")

    @model_validator(mode="after")
    def _require_identity(self) -> "EvaluationRequest":
        if not (self.name.strip() or self.document_text or self.external_profile_id):
            raise ValueError("one of name, documentText or externalProfileId is required")
        return self

    def reference(self) -> ProfileReference:
        return ProfileReference(
            name=self.name.strip(),
            document_text=self.document_text,
            external_profile_id=self.external_profile_id.strip() if self.external_profile_id else None,
            github_username=(self.github_username or "").strip() or None,
        )


class SearchRequest(BaseModel):
    """Candidate search request."""

    filters: FilterCriteria = Field(default_factory=FilterCriteria)
    max_profiles: int = Field(default=10, ge=1)
    max_search_results: int = Field(default=30, ge=1)
    processing_method: ProcessingMethod = "parallel"
    concurrency: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(alias_generator=wire_alias, populate_by_name=True, extra="forbid")


__all__ = ["EvaluationRequest", "SearchRequest", "ProcessingMethod"]
