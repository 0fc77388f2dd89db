"""Cache-aware extraction stage shared by all dimensions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

import pydantic
import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

from ...cache import CacheStore
from ...errors import (
    ErrorKind,
    MalformedResponseError,
    RateLimitError,
    classify,
)
from ...schemas.extraction import Dimension, ExtractionResult
from ...schemas.profile import ProfileReference, StageContext

if TYPE_CHECKING:
    from .. import ProfileExtractor
    from ..limits import CallLimiter


@dataclass
class StagePolicy:
    """Retry settings for collaborator calls."""

    max_attempts: int = 2
    retry_wait_seconds: float = 0.5


def _is_transient(exc: BaseException) -> bool:
    return classify(exc) is ErrorKind.TRANSIENT


class ExtractionStage:
    """Compute one dimension for a profile, through the cache.

    Subclasses pick the dimension and may override :meth:`normalize` to adapt
    collaborator payloads before validation.
    """

    dimension: ClassVar[Dimension]
    result_type: ClassVar[type[ExtractionResult]]

    def __init__(
        self,
        extractor: "ProfileExtractor",
        *,
        cache: CacheStore,
        policy: StagePolicy | None = None,
    ) -> None:
        self._extractor = extractor
        self._cache = cache
        self._policy = policy or StagePolicy()
        self._logger = structlog.get_logger(__name__).bind(dimension=self.dimension.value)

    async def run(
        self,
        reference: ProfileReference,
        context: StageContext | None = None,
        *,
        limiter: "CallLimiter | None" = None,
    ) -> ExtractionResult:
        """Return the dimension result; only rate limiting escapes as an error."""
        query = reference.cache_query()
        cached = self.lookup(reference)
        if cached is not None:
            return cached

        try:
            raw = await self._call(reference, context, limiter)
        except RateLimitError as exc:
            if limiter is not None and not exc.paused:
                limiter.mark_exhausted(self.dimension)
            self._logger.warning("stage.rate_limited", error=str(exc), paused=exc.paused)
            raise
        except Exception as exc:  # noqa: BLE001
            return self._degrade(exc)

        try:
            if not isinstance(raw, Mapping):
                raise MalformedResponseError(
                    f"expected an object, got {type(raw).__name__}",
                    service=self.dimension.value,
                )
            payload = {
                key: value
                for key, value in raw.items()
                if key not in ("error", "status")
            }
            result = self.result_type.model_validate(self.normalize(payload))
        except pydantic.ValidationError as exc:
            return self._degrade(
                MalformedResponseError(
                    f"payload failed validation ({exc.error_count()} errors)",
                    service=self.dimension.value,
                )
            )
        except (MalformedResponseError, TypeError, ValueError) as exc:
            return self._degrade(exc)

        try:
            self._cache.set(self.dimension.value, query, result.cache_payload())
        except OSError as exc:
            self._logger.warning("stage.cache_write_failed", error=str(exc))
        self._logger.info("stage.extracted")
        return result

    def lookup(self, reference: ProfileReference) -> ExtractionResult | None:
        """Return a valid cached result, purging entries that no longer validate."""
        query = reference.cache_query()
        cached = self._cache.get(self.dimension.value, query)
        if cached is None:
            return None
        try:
            result = self.result_type.model_validate(cached)
        except pydantic.ValidationError as exc:
            self._logger.warning("stage.cache_corrupt", error=str(exc))
            self._cache.discard(self.dimension.value, query)
            return None
        self._logger.debug("stage.cache_hit")
        return result

    def normalize(self, payload: dict[str, Any]) -> dict[str, Any]:
        return payload

    def neutral(self, *, error: str | None = None, status: str = "degraded") -> ExtractionResult:
        return self.result_type.neutral(error=error, status=status)

    async def _call(
        self,
        reference: ProfileReference,
        context: StageContext | None,
        limiter: "CallLimiter | None",
    ) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._policy.max_attempts),
            wait=wait_fixed(self._policy.retry_wait_seconds),
            retry=retry_if_exception(_is_transient),
            before_sleep=self._log_retry,
            reraise=True,
        )
        return await retrying(self._invoke, reference, context, limiter)

    async def _invoke(
        self,
        reference: ProfileReference,
        context: StageContext | None,
        limiter: "CallLimiter | None",
    ) -> Any:
        if limiter is None:
            return await self._extractor.extract(self.dimension, reference, context)
        async with limiter.slot(self.dimension):
            return await self._extractor.extract(self.dimension, reference, context)

    def _log_retry(self, retry_state: Any) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        self._logger.info(
            "stage.retrying",
            attempt=retry_state.attempt_number,
            error=str(error) if error else None,
        )

    def _degrade(self, exc: BaseException) -> ExtractionResult:
        message = f"{self.dimension.label}: {exc}"
        self._logger.warning(
            "stage.degraded",
            kind=classify(exc).value,
            error=message,
        )
        return self.neutral(error=message)


__all__ = ["ExtractionStage", "StagePolicy"]
