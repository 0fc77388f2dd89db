"""File-backed JSON cache shared by the extraction stages."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator

import pendulum
import structlog

from .errors import CacheCorruptionError

DEFAULT_TTL_HOURS = 24.0


@dataclass(slots=True, frozen=True)
class CacheStats:
    """Entry counts for one cache directory."""

    total: int
    valid: int
    expired: int
    size_bytes: int

    def to_payload(self) -> dict[str, int]:
        return {
            "total": self.total,
            "valid": self.valid,
            "expired": self.expired,
            "sizeBytes": self.size_bytes,
        }


def normalize_query(query: str) -> str:
    return query.strip().lower()


def cache_key(category: str, query: str) -> str:
    """Stable key for ``(category, query)``, insensitive to case and padding."""
    digest = hashlib.sha256(f"{category}_{normalize_query(query)}".encode("utf-8")).hexdigest()
    return f"{category}_{digest}"


class CacheStore:
    """One JSON file per entry, expired lazily on read.

    Writes go through a temporary file and ``os.replace`` so readers never see
    a partial entry; concurrent writers of the same key resolve to the last
    write.
    """

    def __init__(
        self,
        directory: str | Path,
        *,
        ttl_hours: float = DEFAULT_TTL_HOURS,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._directory = Path(directory)
        self._ttl_seconds = ttl_hours * 3600.0
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, category: str, query: str) -> Any | None:
        path = self._path(cache_key(category, query))
        try:
            record = self._read(path)
        except FileNotFoundError:
            self._logger.debug("cache.miss", category=category)
            return None
        except CacheCorruptionError as exc:
            self._logger.warning("cache.corrupt_entry", category=category, error=str(exc))
            self._unlink(path)
            return None
        if self._is_expired(record):
            self._logger.debug("cache.expired", category=category)
            self._unlink(path)
            return None
        self._logger.debug("cache.hit", category=category)
        return record["payload"]

    def set(self, category: str, query: str, payload: Any) -> None:
        record = {
            "timestamp": self._now().timestamp(),
            "category": category,
            "query": query,
            "payload": payload,
        }
        path = self._path(cache_key(category, query))
        handle, temp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(record, stream, ensure_ascii=False)
            os.replace(temp_name, path)
        except BaseException:
            self._unlink(Path(temp_name))
            raise
        self._logger.debug("cache.stored", category=category)

    def discard(self, category: str, query: str) -> bool:
        path = self._path(cache_key(category, query))
        if not self._unlink(path):
            return False
        self._logger.info("cache.discarded", category=category)
        return True

    def clear(self, category: str | None = None) -> int:
        removed = 0
        for path in self._entries(category):
            if self._unlink(path):
                removed += 1
        self._logger.info("cache.cleared", category=category, removed=removed)
        return removed

    def sweep_expired(self) -> int:
        """Delete expired and unreadable entries, returning how many went."""
        removed = 0
        for path in self._entries(None):
            try:
                record = self._read(path)
            except FileNotFoundError:
                continue
            except CacheCorruptionError:
                expired = True
            else:
                expired = self._is_expired(record)
            if expired and self._unlink(path):
                removed += 1
        self._logger.info("cache.swept", removed=removed)
        return removed

    def stats(self, category: str | None = None) -> CacheStats:
        total = valid = expired = size = 0
        for path in self._entries(category):
            try:
                size += path.stat().st_size
                record = self._read(path)
            except FileNotFoundError:
                continue
            except CacheCorruptionError:
                total += 1
                expired += 1
                continue
            total += 1
            if self._is_expired(record):
                expired += 1
            else:
                valid += 1
        return CacheStats(total=total, valid=valid, expired=expired, size_bytes=size)

    def _entries(self, category: str | None) -> Iterator[Path]:
        for path in sorted(self._directory.glob("*.json")):
            if path.name.startswith(".tmp-"):
                continue
            # Categories may share a prefix ("work" and "work_experience").
            if category and path.stem.rsplit("_", 1)[0] != category:
                continue
            yield path

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CacheCorruptionError(f"unreadable cache entry {path.name}") from exc
        if not isinstance(record, dict) or "payload" not in record:
            raise CacheCorruptionError(f"malformed cache entry {path.name}")
        if not isinstance(record.get("timestamp"), (int, float)):
            raise CacheCorruptionError(f"cache entry {path.name} has no timestamp")
        return record

    def _is_expired(self, record: dict[str, Any]) -> bool:
        return self._now().timestamp() > record["timestamp"] + self._ttl_seconds

    def _now(self) -> Any:
        return self._now_provider()

    @staticmethod
    def _unlink(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True


__all__ = ["CacheStore", "CacheStats", "cache_key", "normalize_query", "DEFAULT_TTL_HOURS"]
