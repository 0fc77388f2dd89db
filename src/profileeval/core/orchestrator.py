"""Single-profile evaluation across all dimensions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping

import structlog

from ..errors import RateLimitError
from ..schemas.extraction import (
    DIMENSION_ORDER,
    Dimension,
    ExtractionResult,
    ExtractionSet,
)
from ..schemas.profile import ProfileReference, StageContext
from ..schemas.weights import WeightVector
from .limits import CallLimiter
from .scoring import ScoreBreakdown, ScoringEngine
from .stages import ExtractionStage

EvaluationStatus = Literal["complete", "critical-abort"]

WEIGHTS_SUBSTITUTED_WARNING = "Scoring: invalid weights supplied, default weights used"


@dataclass(slots=True, frozen=True)
class EvaluationResult:
    """Outcome of evaluating one profile."""

    profile_name: str
    extractions: ExtractionSet
    scoring: ScoreBreakdown | None
    errors: list[str] = field(default_factory=list)
    critical: bool = False
    status: EvaluationStatus = "complete"

    def to_payload(self) -> dict[str, Any]:
        return {
            "profileName": self.profile_name,
            "parsing": self.extractions.to_payload(),
            "scoring": self.scoring.to_payload() if self.scoring else None,
            "errors": list(self.errors),
            "critical": self.critical,
            "status": self.status,
        }


class EvaluationOrchestrator:
    """Runs the five stages in fixed order, then scores.

    A rate-limit failure aborts the remaining stages; any other failure has
    already been degraded by the stage and is only recorded.
    """

    def __init__(
        self,
        stages: Iterable[ExtractionStage],
        *,
        engine: ScoringEngine,
    ) -> None:
        self._stages = {stage.dimension: stage for stage in stages}
        missing = [d.value for d in DIMENSION_ORDER if d not in self._stages]
        if missing:
            raise ValueError(f"Missing extraction stages: {', '.join(missing)}")
        self._engine = engine
        self._logger = structlog.get_logger(__name__)

    @property
    def stages(self) -> dict[Dimension, ExtractionStage]:
        return dict(self._stages)

    @property
    def engine(self) -> ScoringEngine:
        return self._engine

    async def evaluate(
        self,
        reference: ProfileReference,
        *,
        weights: WeightVector | Mapping[str, Any] | None = None,
        limiter: CallLimiter | None = None,
    ) -> EvaluationResult:
        results: dict[Dimension, ExtractionResult] = {}
        errors: list[str] = []
        current = reference

        for dimension in DIMENSION_ORDER:
            stage = self._stages[dimension]
            context = self._context_for(dimension, results)
            try:
                result = await stage.run(current, context, limiter=limiter)
            except RateLimitError as exc:
                message = f"{dimension.label}: {exc}"
                results[dimension] = stage.neutral(error=message, status="critical")
                errors.append(message)
                self._logger.warning(
                    "evaluation.critical_abort",
                    profile=current.display_name(),
                    dimension=dimension.value,
                    error=str(exc),
                )
                return EvaluationResult(
                    profile_name=current.display_name(),
                    extractions=ExtractionSet.from_results(results),
                    scoring=None,
                    errors=errors,
                    critical=True,
                    status="critical-abort",
                )

            results[dimension] = result
            if result.error:
                errors.append(result.error)
            if dimension is Dimension.EDUCATION:
                current = current.with_name(result.name)

        extractions = ExtractionSet.from_results(results)
        scoring = self._engine.score(extractions, weights)
        if scoring.weights_substituted:
            errors.append(WEIGHTS_SUBSTITUTED_WARNING)

        self._logger.info(
            "evaluation.complete",
            profile=current.display_name(),
            total_score=scoring.total_score,
            grade=scoring.grade,
            errors=len(errors),
        )
        return EvaluationResult(
            profile_name=current.display_name(),
            extractions=extractions,
            scoring=scoring,
            errors=errors,
        )

    @staticmethod
    def _context_for(
        dimension: Dimension,
        results: Mapping[Dimension, ExtractionResult],
    ) -> StageContext | None:
        if dimension is not Dimension.WORK_EXPERIENCE:
            return None
        return StageContext(
            publications=results.get(Dimension.PUBLICATIONS),
            code=results.get(Dimension.CODE),
        )


__all__ = ["EvaluationOrchestrator", "EvaluationResult", "WEIGHTS_SUBSTITUTED_WARNING"]
