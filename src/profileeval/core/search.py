"""Candidate filter pipeline over a discovery stream."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterable, Literal, Mapping

import structlog

from ..errors import RateLimitError
from ..schemas.extraction import Dimension, ExtractionResult, ExtractionSet
from ..schemas.filters import FilterCriteria
from ..schemas.profile import CandidateProfile, StageContext
from ..schemas.weights import WeightVector
from .filters import passes_filter
from .limits import CallLimiter
from .scoring import ScoreBreakdown, ScoringEngine
from .stages import ExtractionStage

if TYPE_CHECKING:
    from . import CandidateDiscovery

CandidateOutcome = Literal["passed", "rejected", "critical", "paused"]
ProcessingMethod = Literal["sequential", "parallel"]


@dataclass(slots=True, frozen=True)
class CandidateResult:
    """What happened to one discovered candidate."""

    candidate: CandidateProfile
    profile_name: str
    outcome: CandidateOutcome
    extractions: ExtractionSet
    passed_filters: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    scoring: ScoreBreakdown | None = None

    @property
    def passed(self) -> bool:
        return self.outcome == "passed"

    def to_payload(self) -> dict[str, Any]:
        return {
            "username": self.candidate.username,
            "profileName": self.profile_name,
            "url": self.candidate.url,
            "parsing": self.extractions.to_payload(),
            "scoring": self.scoring.to_payload() if self.scoring else None,
            "passedFilters": list(self.passed_filters),
            "errors": list(self.errors),
            "outcome": self.outcome,
        }


@dataclass(slots=True, frozen=True)
class SearchSummary:
    profiles_processed: int
    profiles_passed: int
    search_results: int
    processing_time: float
    processing_method: ProcessingMethod
    rate_limited: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "profilesProcessed": self.profiles_processed,
            "profilesPassed": self.profiles_passed,
            "searchResults": self.search_results,
            "processingTime": self.processing_time,
            "processingMethod": self.processing_method,
            "rateLimited": list(self.rate_limited),
            "errors": list(self.errors),
        }


@dataclass(slots=True, frozen=True)
class SearchOutcome:
    """Passing candidates in discovery order plus the run summary."""

    success: bool
    profiles: list[CandidateResult]
    summary: SearchSummary
    processed: list[CandidateResult] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "profiles": [profile.to_payload() for profile in self.profiles],
            "summary": self.summary.to_payload(),
        }


class CandidateFilterPipeline:
    """Filter discovered candidates with short-circuit evaluation.

    Candidates are pulled lazily in batches of ``concurrency`` and each batch
    is processed concurrently; results are collected in discovery order, so a
    run with ``concurrency=1`` and a concurrent run return the same passing
    list.
    """

    def __init__(
        self,
        *,
        discovery: "CandidateDiscovery",
        stages: Iterable[ExtractionStage],
        engine: ScoringEngine,
        max_concurrent_calls: int | None = None,
        weights: WeightVector | Mapping[str, Any] | None = None,
    ) -> None:
        self._discovery = discovery
        self._stages = {stage.dimension: stage for stage in stages}
        self._engine = engine
        self._max_concurrent_calls = max_concurrent_calls
        self._weights = weights
        self._logger = structlog.get_logger(__name__)

    async def run(
        self,
        criteria: FilterCriteria,
        *,
        max_profiles: int = 10,
        max_search_results: int = 30,
        concurrency: int = 1,
    ) -> SearchOutcome:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        missing = [d.value for d in criteria.enabled_dimensions() if d not in self._stages]
        if missing:
            raise ValueError(f"Missing extraction stages: {', '.join(missing)}")

        started = time.monotonic()
        method: ProcessingMethod = "sequential" if concurrency == 1 else "parallel"
        limiter = CallLimiter(self._max_concurrent_calls)
        processed: list[CandidateResult] = []
        passed: list[CandidateResult] = []
        errors: list[str] = []
        search_results = 0
        discovery_failed = False

        self._logger.info(
            "pipeline.started",
            method=method,
            concurrency=concurrency,
            max_profiles=max_profiles,
            enabled=[d.value for d in criteria.enabled_dimensions()],
        )

        stream = aiter(self._discovery.discover(criteria, max_search_results))
        try:
            while len(passed) < max_profiles and search_results < max_search_results:
                size = min(concurrency, max_search_results - search_results)
                batch, exhausted, failure = await self._next_batch(stream, size)
                search_results += len(batch)
                if failure is not None:
                    discovery_failed = True
                    errors.append(f"Discovery: {failure}")
                    self._logger.warning("pipeline.discovery_failed", error=str(failure))
                if batch:
                    outcomes = await asyncio.gather(
                        *(self._process(candidate, criteria, limiter) for candidate in batch)
                    )
                    for outcome in outcomes:
                        processed.append(outcome)
                        if outcome.passed:
                            passed.append(outcome)
                        elif outcome.outcome in ("critical", "paused"):
                            errors.extend(
                                f"{outcome.candidate.username}: {error}" for error in outcome.errors
                            )
                if exhausted or failure is not None:
                    break
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        profiles = passed[:max_profiles]
        summary = SearchSummary(
            profiles_processed=len(processed),
            profiles_passed=len(profiles),
            search_results=search_results,
            processing_time=round(time.monotonic() - started, 3),
            processing_method=method,
            rate_limited=sorted(d.value for d in limiter.exhausted),
            errors=errors,
        )
        self._logger.info(
            "pipeline.finished",
            processed=summary.profiles_processed,
            passed=summary.profiles_passed,
            search_results=search_results,
            rate_limited=summary.rate_limited,
        )
        return SearchOutcome(
            success=not (discovery_failed and search_results == 0),
            profiles=profiles,
            summary=summary,
            processed=processed,
        )

    @staticmethod
    async def _next_batch(
        stream: AsyncIterator[CandidateProfile],
        size: int,
    ) -> tuple[list[CandidateProfile], bool, Exception | None]:
        batch: list[CandidateProfile] = []
        while len(batch) < size:
            try:
                candidate = await anext(stream)
            except StopAsyncIteration:
                return batch, True, None
            except Exception as exc:  # noqa: BLE001
                return batch, True, exc
            batch.append(candidate)
        return batch, False, None

    async def _process(
        self,
        candidate: CandidateProfile,
        criteria: FilterCriteria,
        limiter: CallLimiter,
    ) -> CandidateResult:
        logger = self._logger.bind(username=candidate.username)
        reference = candidate.reference()
        results: dict[Dimension, ExtractionResult] = {}
        passed_filters: list[str] = []
        errors: list[str] = []

        for dimension in criteria.enabled_dimensions():
            stage = self._stages[dimension]
            context = None
            if dimension is Dimension.WORK_EXPERIENCE:
                context = StageContext(
                    publications=results.get(Dimension.PUBLICATIONS),
                    code=results.get(Dimension.CODE),
                )
            try:
                result = await stage.run(reference, context, limiter=limiter)
            except RateLimitError as exc:
                message = f"{dimension.label}: {exc}"
                results[dimension] = stage.neutral(error=message, status="critical")
                errors.append(message)
                outcome: CandidateOutcome = "paused" if exc.paused else "critical"
                logger.warning(
                    "pipeline.candidate_dropped",
                    dimension=dimension.value,
                    outcome=outcome,
                )
                return CandidateResult(
                    candidate=candidate,
                    profile_name=reference.display_name(),
                    outcome=outcome,
                    extractions=ExtractionSet.from_results(results),
                    passed_filters=passed_filters,
                    errors=errors,
                )

            results[dimension] = result
            if result.error:
                errors.append(result.error)
            if dimension is Dimension.EDUCATION:
                reference = reference.with_name(result.name)
            if not passes_filter(dimension, result, criteria.for_dimension(dimension)):
                logger.info("pipeline.candidate_rejected", dimension=dimension.value)
                return CandidateResult(
                    candidate=candidate,
                    profile_name=reference.display_name(),
                    outcome="rejected",
                    extractions=ExtractionSet.from_results(results),
                    passed_filters=passed_filters,
                    errors=errors,
                )
            passed_filters.append(dimension.external_key)

        extractions = ExtractionSet.from_results(results)
        scoring = self._engine.score(extractions, self._weights)
        logger.info(
            "pipeline.candidate_passed",
            total_score=scoring.total_score,
            grade=scoring.grade,
        )
        return CandidateResult(
            candidate=candidate,
            profile_name=reference.display_name(),
            outcome="passed",
            extractions=extractions,
            passed_filters=passed_filters,
            errors=errors,
            scoring=scoring,
        )


__all__ = [
    "CandidateFilterPipeline",
    "CandidateResult",
    "CandidateOutcome",
    "SearchSummary",
    "SearchOutcome",
]
