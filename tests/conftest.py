from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Mapping

import pytest
import structlog

from profileeval.cache import CacheStore
from profileeval.core import (
    CodeStage,
    EducationStage,
    ExtractionStage,
    PatentsStage,
    PublicationsStage,
    StagePolicy,
    WorkExperienceStage,
)
from profileeval.schemas import CandidateProfile, Dimension, FilterCriteria, ProfileReference, StageContext


class StubExtractor:
    """Extractor returning canned outcomes and recording every call.

    ``responses`` maps a dimension to a payload, an exception instance, a
    callable taking the reference, or a list of those consumed in order (the
    last entry repeats).
    """

    def __init__(self, responses: Mapping[Dimension, Any] | None = None) -> None:
        self._responses = dict(responses or {})
        self.calls: list[tuple[Dimension, ProfileReference, StageContext | None]] = []

    def calls_for(self, dimension: Dimension) -> list[tuple[Dimension, ProfileReference, StageContext | None]]:
        return [call for call in self.calls if call[0] is dimension]

    async def extract(
        self,
        dimension: Dimension,
        reference: ProfileReference,
        context: StageContext | None,
    ) -> Mapping[str, Any]:
        self.calls.append((dimension, reference, context))
        response = self._responses.get(dimension, {})
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if callable(response) and not isinstance(response, BaseException):
            response = response(reference)
        if isinstance(response, BaseException):
            raise response
        return response


class StubDiscovery:
    def __init__(self, candidates: list[CandidateProfile], *, error: Exception | None = None) -> None:
        self._candidates = candidates
        self._error = error
        self.pulled = 0
        self.calls: list[tuple[FilterCriteria, int]] = []

    async def discover(self, criteria: FilterCriteria, limit: int) -> AsyncIterator[CandidateProfile]:
        self.calls.append((criteria, limit))
        for candidate in self._candidates[:limit]:
            self.pulled += 1
            yield candidate
        if self._error is not None:
            raise self._error


STAGE_TYPES: dict[Dimension, type[ExtractionStage]] = {
    Dimension.EDUCATION: EducationStage,
    Dimension.PUBLICATIONS: PublicationsStage,
    Dimension.PATENTS: PatentsStage,
    Dimension.CODE: CodeStage,
    Dimension.WORK_EXPERIENCE: WorkExperienceStage,
}


@pytest.fixture(autouse=True)
def _reset_structlog() -> Any:
    """Keep logging configured by one test (e.g. against a CliRunner stream) from leaking."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def cache(tmp_path) -> CacheStore:
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def fast_policy() -> StagePolicy:
    return StagePolicy(max_attempts=2, retry_wait_seconds=0.0)


@pytest.fixture
def make_stages(cache: CacheStore, fast_policy: StagePolicy) -> Callable[..., list[ExtractionStage]]:
    """Build the five stages over one extractor or a per-dimension mapping."""

    def factory(extractors: Any) -> list[ExtractionStage]:
        stages = []
        for dimension, stage_type in STAGE_TYPES.items():
            extractor = extractors[dimension] if isinstance(extractors, dict) else extractors
            stages.append(stage_type(extractor, cache=cache, policy=fast_policy))
        return stages

    return factory


def strong_profile_responses() -> dict[Dimension, Any]:
    return {
        Dimension.EDUCATION: {
            "name": "Ada Lovelace",
            "degree": "PhD",
            "fieldOfStudy": "Computer Science",
            "institute": "Example University",
            "instituteTier": "Top Institute (QS <300)",
        },
        Dimension.PUBLICATIONS: {
            "numberOfPublications": 12,
            "citations": 40,
            "hIndex": 4,
            "experienceBracket": "0-3",
            "venueQuality": {"hasTopAIConference": True},
        },
        Dimension.PATENTS: {"grantedFirstInventorCount": 1},
        Dimension.CODE: {
            "username": "ada",
            "repoVolume": 8,
            "repoInitiative": 5,
            "recentActivity": 2,
            "popularity": 60,
            "aiRelevance": True,
        },
        Dimension.WORK_EXPERIENCE: {
            "topAIOrganizations": True,
            "impactQuality": 4,
            "mentorshipRole": True,
            "dlFrameworks": True,
        },
    }


@pytest.fixture
def strong_responses() -> dict[Dimension, Any]:
    return strong_profile_responses()


@pytest.fixture
def stub_extractor() -> type[StubExtractor]:
    return StubExtractor


@pytest.fixture
def stub_discovery() -> type[StubDiscovery]:
    return StubDiscovery
