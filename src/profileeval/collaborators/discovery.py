"""Candidate discovery through a web search endpoint."""

from __future__ import annotations

import asyncio
import re
from typing import Any, AsyncIterator

import structlog

from ..errors import MalformedResponseError, NotFoundError
from ..schemas.filters import FilterCriteria
from ..schemas.profile import CandidateProfile
from .http import request_json

PROFILE_SITE = "site:linkedin.com/in/"
AI_KEYWORDS = (
    '"AI" OR "Machine Learning" OR "Artificial Intelligence" '
    'OR "Deep Learning" OR "Data Science"'
)

_USERNAME_PATTERN = re.compile(r"linkedin\.com/in/([^/?#]+)")
_TITLE_SEPARATORS = re.compile(r"\s+[-|–—]\s+")


def build_search_query(criteria: FilterCriteria) -> str:
    """Search query for profiles matching the education filter."""
    parts = [PROFILE_SITE]
    education = criteria.education
    if education.enabled:
        for value in (education.degree, education.field_of_study, education.institute):
            if value:
                parts.append(f'"{value}"')
    parts.append(AI_KEYWORDS)
    return " ".join(parts)


def extract_username(url: str) -> str | None:
    match = _USERNAME_PATTERN.search(url or "")
    return match.group(1) if match else None


def name_from_title(title: str) -> str:
    """Leading person name of a result title such as ``"Jane Doe - Scientist | LinkedIn"``."""
    if not title:
        return ""
    head = _TITLE_SEPARATORS.split(title.strip(), maxsplit=1)[0]
    head = head.replace("| LinkedIn", "").strip()
    return "" if head.lower() == "linkedin" else head


def parse_search_results(body: Any) -> list[CandidateProfile]:
    if not isinstance(body, dict):
        raise MalformedResponseError("search returned a non-object body", service="search")
    results = body.get("organic_results") or []
    if not isinstance(results, list):
        raise MalformedResponseError("search results are not a list", service="search")

    candidates: list[CandidateProfile] = []
    seen: set[str] = set()
    for item in results:
        if not isinstance(item, dict):
            continue
        link = item.get("link") or ""
        username = extract_username(link)
        if not username or username in seen:
            continue
        seen.add(username)
        title = item.get("title") or ""
        candidates.append(
            CandidateProfile(
                username=username,
                url=link,
                title=title,
                snippet=item.get("snippet") or "",
                name=name_from_title(title),
            )
        )
    return candidates


class SearchDiscovery:
    """Discovers candidate profiles with one search request per run."""

    def __init__(
        self,
        endpoint: str | None,
        api_key: str | None = None,
        *,
        timeout: float = 30.0,
        engine: str = "google",
    ) -> None:
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._engine = engine
        self._logger = structlog.get_logger(__name__)

    async def discover(self, criteria: FilterCriteria, limit: int) -> AsyncIterator[CandidateProfile]:
        if not self._endpoint:
            raise NotFoundError("no search endpoint configured", service="search")
        query = build_search_query(criteria)
        params: dict[str, Any] = {"engine": self._engine, "q": query, "num": limit}
        if self._api_key:
            params["api_key"] = self._api_key
        self._logger.info("discovery.search", query=query, limit=limit)
        body = await asyncio.to_thread(
            request_json,
            self._endpoint,
            service="search",
            params=params,
            timeout=self._timeout,
        )
        candidates = parse_search_results(body)
        self._logger.info("discovery.results", count=len(candidates))
        for candidate in candidates[:limit]:
            yield candidate


__all__ = [
    "SearchDiscovery",
    "build_search_query",
    "extract_username",
    "name_from_title",
    "parse_search_results",
]
