from __future__ import annotations

import asyncio

import pytest

from profileeval.core import CandidateFilterPipeline, ScoringEngine
from profileeval.errors import RateLimitError, TransientExternalError
from profileeval.schemas import CandidateProfile, Dimension, FilterCriteria

CRITERIA = FilterCriteria.model_validate(
    {
        "education": {"enabled": True, "degree": "PhD"},
        "publications": {"enabled": True, "minCitations": "10"},
    }
)


def candidates(count: int) -> list[CandidateProfile]:
    return [
        CandidateProfile(username=f"user{i}", url=f"https://profiles.example/in/user{i}")
        for i in range(count)
    ]


def education_for(rejected: set[str]):
    def respond(reference):
        degree = "Master" if reference.external_profile_id in rejected else "PhD"
        return {"degree": degree, "name": reference.external_profile_id.title()}

    return respond


def build(make_stages, stub_extractor, stub_discovery, pool, *, rejected=(), education=None):
    extractors = {
        dimension: stub_extractor(
            {
                Dimension.PUBLICATIONS: {"citations": 25, "hIndex": 2},
                Dimension.PATENTS: {},
                Dimension.CODE: {},
                Dimension.WORK_EXPERIENCE: {},
            }
        )
        for dimension in Dimension
    }
    extractors[Dimension.EDUCATION] = stub_extractor(
        {Dimension.EDUCATION: education or education_for(set(rejected))}
    )
    discovery = stub_discovery(pool)
    pipeline = CandidateFilterPipeline(
        discovery=discovery,
        stages=make_stages(extractors),
        engine=ScoringEngine(),
        max_concurrent_calls=2,
    )
    return pipeline, extractors, discovery


@pytest.mark.asyncio
async def test_failed_education_skips_later_dimensions(make_stages, stub_extractor, stub_discovery):
    pipeline, extractors, _ = build(
        make_stages, stub_extractor, stub_discovery, candidates(3), rejected={"user0", "user1", "user2"}
    )

    outcome = await pipeline.run(CRITERIA, concurrency=1)

    assert outcome.profiles == []
    assert [result.outcome for result in outcome.processed] == ["rejected"] * 3
    assert len(extractors[Dimension.EDUCATION].calls) == 3
    for dimension in (Dimension.PUBLICATIONS, Dimension.PATENTS, Dimension.CODE, Dimension.WORK_EXPERIENCE):
        assert extractors[dimension].calls == []


@pytest.mark.asyncio
async def test_disabled_dimensions_are_never_extracted(make_stages, stub_extractor, stub_discovery):
    pipeline, extractors, _ = build(make_stages, stub_extractor, stub_discovery, candidates(2))

    outcome = await pipeline.run(CRITERIA, concurrency=2)

    assert [profile.candidate.username for profile in outcome.profiles] == ["user0", "user1"]
    assert outcome.profiles[0].passed_filters == ["education", "publications"]
    assert outcome.profiles[0].scoring is not None
    assert extractors[Dimension.PATENTS].calls == []
    assert extractors[Dimension.CODE].calls == []


@pytest.mark.asyncio
async def test_sequential_and_parallel_return_same_profiles(make_stages, stub_extractor, stub_discovery):
    usernames = {}
    for concurrency in (1, 3):
        pipeline, _, _ = build(
            make_stages, stub_extractor, stub_discovery, candidates(6), rejected={"user1", "user3"}
        )
        outcome = await pipeline.run(CRITERIA, max_profiles=3, concurrency=concurrency)
        usernames[concurrency] = [profile.candidate.username for profile in outcome.profiles]

    assert usernames[1] == usernames[3] == ["user0", "user2", "user4"]


@pytest.mark.asyncio
async def test_parallel_batch_is_trimmed_to_max_profiles(make_stages, stub_extractor, stub_discovery):
    pipeline, _, discovery = build(make_stages, stub_extractor, stub_discovery, candidates(10))

    outcome = await pipeline.run(CRITERIA, max_profiles=2, concurrency=4)

    assert [profile.candidate.username for profile in outcome.profiles] == ["user0", "user1"]
    assert outcome.summary.profiles_passed == 2
    assert outcome.summary.profiles_processed == 4
    assert outcome.summary.processing_method == "parallel"
    assert discovery.pulled == 4


@pytest.mark.asyncio
async def test_search_results_bound_discovery(make_stages, stub_extractor, stub_discovery):
    pipeline, _, discovery = build(
        make_stages, stub_extractor, stub_discovery, candidates(8), rejected={f"user{i}" for i in range(8)}
    )

    outcome = await pipeline.run(CRITERIA, max_search_results=3, concurrency=2)

    assert discovery.calls[0][1] == 3
    assert outcome.summary.search_results == 3
    assert outcome.summary.profiles_processed == 3
    assert outcome.success is True


@pytest.mark.asyncio
async def test_rate_limit_pauses_dimension_for_the_run(make_stages, stub_extractor, stub_discovery):
    def respond(reference):
        if reference.external_profile_id == "user0":
            return RateLimitError("quota exhausted", service="education", status=429)
        return {"degree": "PhD"}

    pipeline, extractors, _ = build(
        make_stages, stub_extractor, stub_discovery, candidates(3), education=respond
    )

    outcome = await pipeline.run(CRITERIA, concurrency=1)

    assert [result.outcome for result in outcome.processed] == ["critical", "paused", "paused"]
    assert len(extractors[Dimension.EDUCATION].calls) == 1
    assert outcome.summary.rate_limited == ["education"]
    assert outcome.summary.errors[0] == "user0: Education: quota exhausted"
    assert outcome.summary.errors[1].startswith("user1: Education:")
    assert outcome.success is True
    assert outcome.profiles == []


@pytest.mark.asyncio
async def test_discovery_failure_before_any_result(make_stages, stub_extractor, stub_discovery):
    pipeline = CandidateFilterPipeline(
        discovery=stub_discovery([], error=TransientExternalError("search unavailable")),
        stages=make_stages(stub_extractor()),
        engine=ScoringEngine(),
    )

    outcome = await pipeline.run(CRITERIA)

    assert outcome.success is False
    assert outcome.summary.errors == ["Discovery: search unavailable"]
    assert outcome.to_payload()["summary"]["searchResults"] == 0


@pytest.mark.asyncio
async def test_discovery_failure_after_results_keeps_them(make_stages, stub_extractor, stub_discovery):
    pipeline = CandidateFilterPipeline(
        discovery=stub_discovery(candidates(2), error=TransientExternalError("page 2 failed")),
        stages=make_stages(stub_extractor({Dimension.EDUCATION: {"degree": "PhD"}, Dimension.PUBLICATIONS: {"citations": 50}})),
        engine=ScoringEngine(),
    )

    outcome = await pipeline.run(CRITERIA, concurrency=1)

    assert outcome.success is True
    assert len(outcome.profiles) == 2
    assert outcome.summary.errors == ["Discovery: page 2 failed"]


@pytest.mark.asyncio
async def test_payload_shape(make_stages, stub_extractor, stub_discovery):
    pipeline, _, _ = build(make_stages, stub_extractor, stub_discovery, candidates(1))

    payload = (await pipeline.run(CRITERIA)).to_payload()

    profile = payload["profiles"][0]
    assert profile["username"] == "user0"
    assert profile["profileName"] == "User0"
    assert profile["outcome"] == "passed"
    assert profile["passedFilters"] == ["education", "publications"]
    assert payload["summary"]["processingMethod"] == "sequential"
    assert payload["summary"]["profilesPassed"] == 1


@pytest.mark.asyncio
async def test_invalid_concurrency_is_rejected(make_stages, stub_extractor, stub_discovery):
    pipeline, _, _ = build(make_stages, stub_extractor, stub_discovery, candidates(1))

    with pytest.raises(ValueError):
        await pipeline.run(CRITERIA, concurrency=0)


class GaugedExtractor:
    """Slow extractor tracking how many calls are in flight at once."""

    def __init__(self, *, delay=0.02, rate_limited=()):
        self.delay = delay
        self.rate_limited = set(rate_limited)
        self.active = 0
        self.peak = 0
        self.calls = []

    async def extract(self, dimension, reference, context):
        self.calls.append((dimension, reference.external_profile_id))
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            if reference.external_profile_id in self.rate_limited:
                await asyncio.sleep(self.delay / 4)
                raise RateLimitError("quota exhausted", service=dimension.value, status=429)
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if dimension is Dimension.EDUCATION:
            return {"degree": "PhD"}
        return {"citations": 25}


@pytest.mark.asyncio
async def test_concurrent_calls_are_capped(make_stages, stub_discovery):
    extractor = GaugedExtractor()
    pipeline = CandidateFilterPipeline(
        discovery=stub_discovery(candidates(8)),
        stages=make_stages(extractor),
        engine=ScoringEngine(),
        max_concurrent_calls=2,
    )

    outcome = await pipeline.run(CRITERIA, max_profiles=8, concurrency=8)

    assert extractor.peak == 2
    assert len(extractor.calls) == 16
    assert outcome.summary.profiles_passed == 8


@pytest.mark.asyncio
async def test_rate_limit_in_parallel_batch_lets_in_flight_candidates_finish(make_stages, stub_discovery):
    extractor = GaugedExtractor(rate_limited={"user0"})
    pipeline = CandidateFilterPipeline(
        discovery=stub_discovery(candidates(5)),
        stages=make_stages(extractor),
        engine=ScoringEngine(),
    )

    outcome = await pipeline.run(CRITERIA, concurrency=3)

    assert [result.outcome for result in outcome.processed] == ["critical", "passed", "passed", "paused", "paused"]
    assert [profile.candidate.username for profile in outcome.profiles] == ["user1", "user2"]
    education_calls = [username for dimension, username in extractor.calls if dimension is Dimension.EDUCATION]
    assert education_calls == ["user0", "user1", "user2"]
    assert outcome.summary.rate_limited == ["education"]
    assert outcome.summary.processing_method == "parallel"
