"""JSON-over-HTTP collaborators built on urllib."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Collection, Mapping
from urllib import error, parse, request

import structlog

from ..errors import (
    MalformedResponseError,
    NotFoundError,
    RateLimitError,
    TransientExternalError,
)
from ..schemas.extraction import Dimension
from ..schemas.profile import ProfileReference, StageContext

_RATE_LIMIT_STATUSES = frozenset({402, 429})

_logger = structlog.get_logger(__name__)


def request_json(
    url: str,
    *,
    service: str,
    method: str = "GET",
    payload: Mapping[str, Any] | None = None,
    params: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float = 30.0,
    rate_limit_statuses: Collection[int] = _RATE_LIMIT_STATUSES,
) -> Any:
    """Perform a blocking JSON request, raising classified errors on failure."""
    if params:
        url = f"{url}{'&' if '?' in url else '?'}{parse.urlencode(params)}"
    data = None
    request_headers = {"Accept": "application/json"}
    if payload is not None:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        request_headers["Content-Type"] = "application/json"
    if headers:
        request_headers.update(headers)

    req = request.Request(url, data=data, headers=request_headers, method=method)
    try:
        with request.urlopen(req, timeout=timeout) as resp:
            body = resp.read().decode("utf-8")
    except error.HTTPError as exc:
        raise _classify_status(exc.code, service, rate_limit_statuses) from exc
    except TimeoutError as exc:
        raise TransientExternalError(f"{service} timed out", service=service) from exc
    except error.URLError as exc:
        raise TransientExternalError(
            f"{service} unreachable: {exc.reason}", service=service
        ) from exc
    except UnicodeDecodeError as exc:
        raise MalformedResponseError(f"{service} returned non-UTF-8 body", service=service) from exc

    if not body:
        raise MalformedResponseError(f"{service} returned an empty body", service=service)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"{service} returned invalid JSON", service=service) from exc


def _classify_status(status: int, service: str, rate_limit_statuses: Collection[int]) -> Exception:
    if status in rate_limit_statuses:
        return RateLimitError(f"{service} rate limit reached (HTTP {status})", service=service, status=status)
    if status == 404:
        return NotFoundError(f"{service} has no data (HTTP 404)", service=service, status=status)
    if status >= 500 or status == 408:
        return TransientExternalError(f"{service} failed (HTTP {status})", service=service, status=status)
    return MalformedResponseError(f"{service} rejected the request (HTTP {status})", service=service, status=status)


class HTTPExtractor:
    """Extractor posting the profile reference to a per-dimension endpoint."""

    def __init__(
        self,
        endpoints: Mapping[str, str],
        api_key: str | None = None,
        *,
        timeout: float = 30.0,
    ) -> None:
        self._endpoints = dict(endpoints)
        self._api_key = api_key
        self._timeout = timeout

    async def extract(
        self,
        dimension: Dimension,
        reference: ProfileReference,
        context: StageContext | None,
    ) -> Mapping[str, Any]:
        endpoint = self._endpoints.get(dimension.value) or self._endpoints.get(dimension.external_key)
        if not endpoint:
            raise NotFoundError(f"no endpoint configured for {dimension.value}", service=dimension.value)

        payload: dict[str, Any] = {
            "dimension": dimension.value,
            "profile": reference.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
        if context is not None:
            payload["context"] = context.to_payload()
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None

        _logger.debug("collaborator.request", dimension=dimension.value, endpoint=endpoint)
        body = await asyncio.to_thread(
            request_json,
            endpoint,
            service=dimension.value,
            method="POST",
            payload=payload,
            headers=headers,
            timeout=self._timeout,
        )
        if not isinstance(body, Mapping):
            raise MalformedResponseError(
                f"{dimension.value} returned {type(body).__name__}, expected an object",
                service=dimension.value,
            )
        return body


__all__ = ["HTTPExtractor", "request_json"]
