from __future__ import annotations

import shutil

import pendulum
import pytest

from profileeval.cache import CacheStore
from profileeval.core import CallLimiter, EducationStage, PatentsStage, PublicationsStage, StagePolicy
from profileeval.core.stages import experience_bracket
from profileeval.errors import NotFoundError, RateLimitError, TransientExternalError
from profileeval.schemas import Dimension, ProfileReference

ADA = ProfileReference(name="Ada Lovelace")


@pytest.mark.asyncio
async def test_cache_hit_skips_the_collaborator(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor({Dimension.EDUCATION: {"degree": "PhD", "fieldOfStudy": "AI"}})
    stage = EducationStage(extractor, cache=cache, policy=fast_policy)

    first = await stage.run(ADA)
    second = await stage.run(ProfileReference(name="Ada Lovelace"))

    assert first == second
    assert second.degree == "PhD"
    assert second.status == "success"
    assert len(extractor.calls) == 1


@pytest.mark.asyncio
async def test_transient_failure_is_retried_once(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor(
        {
            Dimension.PATENTS: [
                TransientExternalError("timed out", service="patents"),
                {"grantedFirstInventorCount": 2},
            ]
        }
    )
    stage = PatentsStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert result.granted_first_inventor_count == 2
    assert result.error is None
    assert len(extractor.calls) == 2


@pytest.mark.asyncio
async def test_repeated_transient_failure_degrades(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor({Dimension.PATENTS: TimeoutError("read timed out")})
    stage = PatentsStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert len(extractor.calls) == 2
    assert result.status == "degraded"
    assert result.error == "Patents: read timed out"
    assert result.granted_first_inventor_count == 0
    assert cache.get("patents", ADA.cache_query()) is None


@pytest.mark.asyncio
async def test_not_found_degrades_without_retry(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor({Dimension.EDUCATION: NotFoundError("no profile", service="education")})
    stage = EducationStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert len(extractor.calls) == 1
    assert result.degree == ""
    assert result.error == "Education: no profile"


@pytest.mark.asyncio
async def test_non_mapping_response_is_malformed(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor({Dimension.EDUCATION: ("PhD",)})
    stage = EducationStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert result.status == "degraded"
    assert result.error.startswith("Education: expected an object")


@pytest.mark.asyncio
async def test_invalid_payload_degrades(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor({Dimension.PATENTS: {"grantedFirstInventorCount": -4}})
    stage = PatentsStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert result.error == "Patents: payload failed validation (1 errors)"
    assert cache.stats("patents").total == 0


@pytest.mark.asyncio
async def test_collaborator_error_field_does_not_leak_into_result(
    stub_extractor, cache: CacheStore, fast_policy: StagePolicy
):
    extractor = stub_extractor({Dimension.EDUCATION: {"degree": "MSc", "error": "partial", "status": "x"}})
    stage = EducationStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert result.error is None
    assert result.status == "success"
    assert "error" not in cache.get("education", ADA.cache_query())


@pytest.mark.asyncio
async def test_rate_limit_marks_dimension_exhausted(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor({Dimension.EDUCATION: RateLimitError("quota", service="education", status=429)})
    stage = EducationStage(extractor, cache=cache, policy=fast_policy)
    limiter = CallLimiter(max_concurrent_calls=2)

    with pytest.raises(RateLimitError) as first:
        await stage.run(ADA, limiter=limiter)
    assert first.value.paused is False
    assert limiter.exhausted == frozenset({Dimension.EDUCATION})

    with pytest.raises(RateLimitError) as second:
        await stage.run(ProfileReference(name="Grace Hopper"), limiter=limiter)
    assert second.value.paused is True
    assert len(extractor.calls) == 1


@pytest.mark.asyncio
async def test_paused_dimension_still_serves_cache(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    cache.set("education", ADA.cache_query(), {"degree": "PhD"})
    extractor = stub_extractor()
    stage = EducationStage(extractor, cache=cache, policy=fast_policy)
    limiter = CallLimiter()
    limiter.mark_exhausted(Dimension.EDUCATION)

    result = await stage.run(ADA, limiter=limiter)

    assert result.degree == "PhD"
    assert extractor.calls == []


@pytest.mark.asyncio
async def test_cached_payload_failing_validation_is_purged(
    stub_extractor, cache: CacheStore, fast_policy: StagePolicy
):
    cache.set("patents", ADA.cache_query(), {"filedPatentCount": "many"})
    extractor = stub_extractor({Dimension.PATENTS: {"filedPatentCount": 1}})
    stage = PatentsStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert result.filed_patent_count == 1
    assert len(extractor.calls) == 1
    assert cache.get("patents", ADA.cache_query()) == result.cache_payload()


@pytest.mark.parametrize(
    ("first_year", "bracket"),
    [(2024, "0-3"), (2021, "0-3"), (2020, "4-7"), (2017, "4-7"), (2016, "8-10"), (2014, "8-10"), (2013, "10+")],
)
def test_experience_bracket(first_year: int, bracket: str):
    assert experience_bracket(first_year, 2024) == bracket


@pytest.mark.asyncio
async def test_publications_bracket_derived_from_first_year(
    stub_extractor, cache: CacheStore, fast_policy: StagePolicy
):
    extractor = stub_extractor({Dimension.PUBLICATIONS: {"hIndex": 15, "firstPublicationYear": 2015}})
    stage = PublicationsStage(
        extractor,
        cache=cache,
        policy=fast_policy,
        now_provider=lambda: pendulum.datetime(2024, 6, 1),
    )

    result = await stage.run(ADA)

    assert result.experience_bracket == "8-10"


@pytest.mark.asyncio
async def test_publications_explicit_bracket_wins(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    extractor = stub_extractor(
        {Dimension.PUBLICATIONS: {"experienceBracket": "10+", "firstPublicationYear": 2022}}
    )
    stage = PublicationsStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert result.experience_bracket == "10+"


@pytest.mark.asyncio
async def test_cache_write_failure_keeps_the_result(stub_extractor, cache: CacheStore, fast_policy: StagePolicy):
    shutil.rmtree(cache.directory)
    extractor = stub_extractor({Dimension.EDUCATION: {"degree": "PhD", "fieldOfStudy": "AI"}})
    stage = EducationStage(extractor, cache=cache, policy=fast_policy)

    result = await stage.run(ADA)

    assert result.degree == "PhD"
    assert result.error is None
    assert not cache.directory.exists()
