"""Request boundary producing the external payload shapes."""

from __future__ import annotations

from typing import Any, Callable, Mapping, TypeVar

import pydantic
import structlog
from pydantic import BaseModel

from .core import CandidateFilterPipeline, EvaluationOrchestrator, ScoringEngine
from .errors import ValidationError
from .schemas.extraction import ExtractionSet
from .schemas.filters import FilterCriteria
from .schemas.requests import EvaluationRequest, SearchRequest
from .schemas.weights import DEFAULT_WEIGHTS, WEIGHT_SUM_TOLERANCE, WeightVector

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_request(model: type[ModelT], data: Any, *, label: str) -> ModelT:
    """Validate ``data`` into ``model``, raising :class:`ValidationError` on failure."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        messages = [
            f"{'.'.join(str(part) for part in error['loc']) or label}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ValidationError(f"Invalid {label}", messages) from exc


class ProfileEvaluationService:
    """Validates requests and serializes results for callers."""

    def __init__(
        self,
        *,
        orchestrator: EvaluationOrchestrator,
        pipeline: CandidateFilterPipeline,
        engine: ScoringEngine,
        query_builder: Callable[[FilterCriteria], str],
        default_concurrency: int = 5,
    ) -> None:
        self._orchestrator = orchestrator
        self._pipeline = pipeline
        self._engine = engine
        self._query_builder = query_builder
        self._default_concurrency = default_concurrency
        self._logger = structlog.get_logger(__name__)

    async def evaluate(self, request: EvaluationRequest | Mapping[str, Any]) -> dict[str, Any]:
        validated = validate_request(EvaluationRequest, request, label="evaluation request")
        reference = validated.reference()
        self._logger.info("service.evaluate", profile=reference.display_name())
        result = await self._orchestrator.evaluate(reference, weights=validated.weights)
        payload = result.to_payload()
        payload.pop("status", None)
        return payload

    async def search(self, request: SearchRequest | Mapping[str, Any]) -> dict[str, Any]:
        validated = validate_request(SearchRequest, request, label="search request")
        if validated.processing_method == "sequential":
            concurrency = 1
        else:
            concurrency = validated.concurrency or self._default_concurrency
        self._logger.info(
            "service.search",
            max_profiles=validated.max_profiles,
            max_search_results=validated.max_search_results,
            concurrency=concurrency,
        )
        outcome = await self._pipeline.run(
            validated.filters,
            max_profiles=validated.max_profiles,
            max_search_results=validated.max_search_results,
            concurrency=concurrency,
        )
        return outcome.to_payload()

    def score(
        self,
        extractions: Mapping[str, Any],
        weights: WeightVector | Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Score already-structured dimension data without extraction."""
        extraction_set = validate_request(ExtractionSet, extractions, label="extractions")
        if weights is not None:
            weights = validate_request(WeightVector, weights, label="weights")
        breakdown = self._engine.score(extraction_set, weights)
        return {
            "parsing": extraction_set.to_payload(),
            "scoring": breakdown.to_payload(),
        }

    def search_query(self, filters: FilterCriteria | Mapping[str, Any]) -> dict[str, Any]:
        criteria = validate_request(FilterCriteria, filters, label="filters")
        return {
            "query": self._query_builder(criteria),
            "enabledFilters": [d.external_key for d in criteria.enabled_dimensions()],
        }

    @staticmethod
    def weights() -> dict[str, Any]:
        return {
            "defaultWeights": DEFAULT_WEIGHTS.to_payload(),
            "sumTolerance": WEIGHT_SUM_TOLERANCE,
        }


__all__ = ["ProfileEvaluationService", "validate_request"]
