"""Per-run cap on concurrent collaborator calls."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

from ..errors import RateLimitError
from ..schemas.extraction import Dimension


class CallLimiter:
    """Semaphore over external calls plus the set of rate-limited dimensions.

    Once a dimension is marked exhausted every later request for a slot on it
    fails fast with a paused ``RateLimitError``; calls already holding a slot
    are left to finish.
    """

    def __init__(self, max_concurrent_calls: int | None = None) -> None:
        self._semaphore = (
            asyncio.Semaphore(max_concurrent_calls) if max_concurrent_calls else None
        )
        self._exhausted: set[Dimension] = set()
        self._logger = structlog.get_logger(__name__)

    @property
    def exhausted(self) -> frozenset[Dimension]:
        return frozenset(self._exhausted)

    def is_exhausted(self, dimension: Dimension) -> bool:
        return dimension in self._exhausted

    def mark_exhausted(self, dimension: Dimension) -> None:
        if dimension not in self._exhausted:
            self._exhausted.add(dimension)
            self._logger.warning("limits.dimension_paused", dimension=dimension.value)

    @asynccontextmanager
    async def slot(self, dimension: Dimension) -> AsyncIterator[None]:
        self._raise_if_paused(dimension)
        if self._semaphore is None:
            yield
            return
        async with self._semaphore:
            # Another task may have hit the limit while this one waited.
            self._raise_if_paused(dimension)
            yield

    def _raise_if_paused(self, dimension: Dimension) -> None:
        if dimension in self._exhausted:
            raise RateLimitError(
                f"{dimension.label} collaborator paused after rate limiting",
                service=dimension.value,
                paused=True,
            )


__all__ = ["CallLimiter"]
