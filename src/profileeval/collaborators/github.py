"""Code contribution extractor backed by the GitHub REST API."""

from __future__ import annotations

import asyncio
import re
from typing import Any, Callable, Iterable, Mapping
from urllib import parse

import pendulum
import structlog
from rapidfuzz import fuzz

from ..errors import MalformedResponseError, NotFoundError
from ..schemas.extraction import Dimension
from ..schemas.profile import ProfileReference, StageContext
from .http import request_json

GITHUB_RATE_LIMIT_STATUSES = frozenset({403, 429})

AI_KEYWORDS: tuple[str, ...] = (
    "artificial intelligence",
    "machine learning",
    "deep learning",
    "neural",
    "tensorflow",
    "pytorch",
    "keras",
    "transformer",
    "computer vision",
    "natural language",
    "llm",
)
_AI_ACRONYMS = re.compile(r"\b(ai|ml|gpt|nlp)\b")


def is_ai_related(text: str) -> bool:
    lowered = text.lower()
    if any(keyword in lowered for keyword in AI_KEYWORDS):
        return True
    return _AI_ACRONYMS.search(lowered) is not None


def summarize_repositories(
    repositories: Iterable[Mapping[str, Any]],
    *,
    now: pendulum.DateTime,
    recent_months: int = 6,
    public_repos: int | None = None,
) -> dict[str, Any]:
    """Activity summary in the shape of :class:`~profileeval.schemas.CodeResult`.

    ``public_repos`` is the account's own repository count; the listing holds
    at most one page, so it is preferred for the volume when known.
    """
    repos = list(repositories)
    cutoff = now.subtract(months=recent_months)

    recent = 0
    ai_relevance = False
    for repo in repos:
        updated = repo.get("pushed_at") or repo.get("updated_at")
        if updated:
            try:
                if pendulum.parse(updated) >= cutoff:
                    recent += 1
            except (ValueError, TypeError):
                pass
        if not ai_relevance:
            text = " ".join(
                [
                    repo.get("name") or "",
                    repo.get("description") or "",
                    " ".join(repo.get("topics") or []),
                ]
            )
            ai_relevance = is_ai_related(text)

    return {
        "repoVolume": public_repos if public_repos is not None else len(repos),
        "repoInitiative": sum(1 for repo in repos if not repo.get("fork")),
        "recentActivity": recent,
        "popularity": sum(int(repo.get("stargazers_count") or 0) for repo in repos),
        "aiRelevance": ai_relevance,
    }


class GitHubCodeExtractor:
    """Resolves a GitHub account and summarizes its repositories.

    A known login on the reference is used as is. Otherwise search hits are
    accepted only when the account's display name is close enough to the
    profile name.
    """

    def __init__(
        self,
        *,
        api_base: str = "https://api.github.com",
        token: str | None = None,
        timeout: float = 15.0,
        min_name_similarity: float = 85.0,
        max_candidates: int = 5,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._min_similarity = min_name_similarity
        self._max_candidates = max_candidates
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    async def extract(
        self,
        dimension: Dimension,
        reference: ProfileReference,
        context: StageContext | None,
    ) -> Mapping[str, Any]:
        if dimension is not Dimension.CODE:
            raise NotFoundError(f"GitHub cannot extract {dimension.value}", service="github")
        if reference.github_username:
            username = reference.github_username
            details = await self._get(f"/users/{parse.quote(username)}")
            self._logger.info("github.known_login", login=username)
        else:
            username, details = await self._match_account(reference.name)
        repositories = await self._get(
            f"/users/{parse.quote(username)}/repos",
            params={"per_page": 100, "sort": "updated"},
        )
        if not isinstance(repositories, list):
            raise MalformedResponseError("repository listing is not a list", service="github")
        public_repos = details.get("public_repos") if isinstance(details, dict) else None
        summary = summarize_repositories(
            repositories,
            now=self._now_provider(),
            public_repos=public_repos if isinstance(public_repos, int) else None,
        )
        summary["username"] = username
        return summary

    async def resolve_username(self, name: str) -> str:
        login, _ = await self._match_account(name)
        return login

    async def _match_account(self, name: str) -> tuple[str, Any]:
        name = name.strip()
        if not name:
            raise NotFoundError("profile has no name to search GitHub with", service="github")
        body = await self._get(
            "/search/users",
            params={"q": f"{name} in:fullname", "per_page": self._max_candidates},
        )
        items = body.get("items") if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise MalformedResponseError("user search returned no item list", service="github")

        best_login, best_details, best_score = None, None, 0.0
        for item in items[: self._max_candidates]:
            login = item.get("login") if isinstance(item, dict) else None
            if not login:
                continue
            details = await self._get(f"/users/{parse.quote(login)}")
            display_name = details.get("name") if isinstance(details, dict) else None
            score = fuzz.token_sort_ratio(name.lower(), (display_name or "").lower())
            if score > best_score:
                best_login, best_details, best_score = login, details, score
        if best_login is None or best_score < self._min_similarity:
            self._logger.info("github.no_match", name=name, best_score=best_score)
            raise NotFoundError(f"no GitHub account matches {name!r}", service="github")
        self._logger.info("github.matched", name=name, login=best_login, score=best_score)
        return best_login, best_details

    async def _get(self, path: str, *, params: Mapping[str, Any] | None = None) -> Any:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"token {self._token}"
        return await asyncio.to_thread(
            request_json,
            f"{self._api_base}{path}",
            service="github",
            params=params,
            headers=headers,
            timeout=self._timeout,
            rate_limit_statuses=GITHUB_RATE_LIMIT_STATUSES,
        )


__all__ = ["GitHubCodeExtractor", "summarize_repositories", "is_ai_related"]
