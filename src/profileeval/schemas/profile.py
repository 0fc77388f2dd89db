"""Profile references passed to stages and candidates found by discovery."""

from __future__ import annotations

import hashlib

from pydantic import BaseModel, ConfigDict, model_validator

from .extraction import CodeResult, PublicationsResult, wire_alias


class ProfileReference(BaseModel):
    """What a stage knows about the profile it is extracting for."""

    name: str = ""
    document_text: str | None = None
    external_profile_id: str | None = None
    github_username: str | None = None

    model_config = ConfigDict(
        alias_generator=wire_alias,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    @model_validator(mode="after")
    def _require_identity(self) -> "ProfileReference":
        if not (self.name.strip() or self.document_text or self.external_profile_id):
            raise ValueError("one of name, documentText or externalProfileId is required")
        return self

    def cache_query(self) -> str:
        """Query string identifying this profile for cache lookups."""
        if self.external_profile_id:
            return f"id:{self.external_profile_id}"
        if self.document_text:
            digest = hashlib.sha256(self.document_text.encode("utf-8")).hexdigest()
            return f"doc:{digest}"
        return f"name:{self.name}"

    def display_name(self) -> str:
        return self.name.strip() or self.external_profile_id or "Unknown"

    def with_name(self, name: str) -> "ProfileReference":
        if not name or name == self.name:
            return self
        return self.model_copy(update={"name": name})


class StageContext(BaseModel):
    """Outputs of earlier stages offered to later ones."""

    publications: PublicationsResult | None = None
    code: CodeResult | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_payload(self) -> dict:
        payload = {}
        if self.publications is not None:
            payload["publications"] = self.publications.to_payload()
        if self.code is not None:
            payload["github"] = self.code.to_payload()
        return payload


class CandidateProfile(BaseModel):
    """Identity of a candidate as returned by discovery."""

    username: str
    url: str = ""
    title: str = ""
    snippet: str = ""
    name: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")

    def reference(self) -> ProfileReference:
        return ProfileReference(name=self.name, external_profile_id=self.username)


__all__ = ["ProfileReference", "StageContext", "CandidateProfile"]
