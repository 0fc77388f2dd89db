"""Publications stage."""

from __future__ import annotations

from typing import Any, Callable

import pendulum

from ...cache import CacheStore
from ...schemas.extraction import Dimension, ExperienceBracket, PublicationsResult
from .base import ExtractionStage, StagePolicy


def experience_bracket(first_publication_year: int, current_year: int) -> ExperienceBracket:
    """Bracket of research experience measured from the first publication."""
    years = current_year - first_publication_year
    if years <= 3:
        return "0-3"
    if years <= 7:
        return "4-7"
    if years <= 10:
        return "8-10"
    return "10+"


class PublicationsStage(ExtractionStage):
    """Bibliometric summary; the experience bracket is derived when absent."""

    dimension = Dimension.PUBLICATIONS
    result_type = PublicationsResult

    def __init__(
        self,
        extractor: Any,
        *,
        cache: CacheStore,
        policy: StagePolicy | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        super().__init__(extractor, cache=cache, policy=policy)
        self._now_provider = now_provider or pendulum.now

    def normalize(self, payload: dict[str, Any]) -> dict[str, Any]:
        if payload.get("experienceBracket") or payload.get("experience_bracket"):
            return payload
        year = payload.get("firstPublicationYear", payload.get("first_publication_year"))
        try:
            year = int(year) if year else 0
        except (TypeError, ValueError):
            return payload
        if year > 0:
            payload = dict(payload)
            payload["experienceBracket"] = experience_bracket(year, self._now_provider().year)
        return payload
