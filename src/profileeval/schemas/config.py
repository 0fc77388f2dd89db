"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .weights import WeightVector


class CacheConfig(BaseModel):
    directory: str = ".profileeval-cache"
    ttl_hours: float = Field(default=24.0, gt=0)


class ScoringConfig(BaseModel):
    weights: WeightVector | None = None


class StageConfig(BaseModel):
    max_attempts: int = Field(default=2, ge=1)
    retry_wait_seconds: float = Field(default=0.5, ge=0.0)


class PipelineConfig(BaseModel):
    concurrency: int = Field(default=5, ge=1)
    max_concurrent_calls: int = Field(default=4, ge=1)


class CollaboratorConfig(BaseModel):
    endpoints: dict[str, str] = Field(default_factory=dict)
    api_key: str | None = None
    timeout: float = Field(default=30.0, gt=0)
    search_endpoint: str | None = None
    search_api_key: str | None = None
    github_api: str = "https://api.github.com"
    github_token: str | None = None


class AppConfig(BaseModel):
    cache: CacheConfig = Field(default_factory=CacheConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    stages: StageConfig = Field(default_factory=StageConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    collaborators: CollaboratorConfig = Field(default_factory=CollaboratorConfig)

    def to_settings(self) -> dict[str, Any]:
        settings = self.model_dump(mode="python", exclude_none=True)
        weights = self.scoring.weights
        if weights is not None:
            settings["scoring"]["weights"] = weights
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)


def load_config_file(path: str | Path) -> AppConfig:
    """Read and validate a YAML configuration file."""
    with Path(path).open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    return load_config(loaded)
