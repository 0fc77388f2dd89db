"""Dependency injection container for the evaluation system."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .cache import CacheStore
from .collaborators import GitHubCodeExtractor, HTTPExtractor, SearchDiscovery, build_search_query
from .core import (
    CandidateFilterPipeline,
    CodeStage,
    EducationStage,
    EvaluationOrchestrator,
    PatentsStage,
    PublicationsStage,
    ScoringEngine,
    StagePolicy,
    WorkExperienceStage,
)
from .schemas.config import AppConfig
from .service import ProfileEvaluationService


class EvaluationContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    cache = providers.Singleton(
        CacheStore,
        directory=config.cache.directory,
        ttl_hours=config.cache.ttl_hours,
    )

    stage_policy = providers.Singleton(
        StagePolicy,
        max_attempts=config.stages.max_attempts,
        retry_wait_seconds=config.stages.retry_wait_seconds,
    )

    extractor = providers.Singleton(
        HTTPExtractor,
        endpoints=config.collaborators.endpoints,
        api_key=config.collaborators.api_key,
        timeout=config.collaborators.timeout,
    )

    code_extractor = providers.Singleton(
        GitHubCodeExtractor,
        api_base=config.collaborators.github_api,
        token=config.collaborators.github_token,
        timeout=config.collaborators.timeout,
    )

    discovery = providers.Singleton(
        SearchDiscovery,
        endpoint=config.collaborators.search_endpoint,
        api_key=config.collaborators.search_api_key,
        timeout=config.collaborators.timeout,
    )

    education_stage = providers.Singleton(
        EducationStage, extractor, cache=cache, policy=stage_policy
    )
    publications_stage = providers.Singleton(
        PublicationsStage, extractor, cache=cache, policy=stage_policy
    )
    patents_stage = providers.Singleton(
        PatentsStage, extractor, cache=cache, policy=stage_policy
    )
    code_stage = providers.Singleton(
        CodeStage, code_extractor, cache=cache, policy=stage_policy
    )
    work_experience_stage = providers.Singleton(
        WorkExperienceStage, extractor, cache=cache, policy=stage_policy
    )

    stages = providers.List(
        education_stage,
        publications_stage,
        patents_stage,
        code_stage,
        work_experience_stage,
    )

    scoring_engine = providers.Singleton(
        ScoringEngine,
        weights=config.scoring.weights,
    )

    orchestrator = providers.Singleton(
        EvaluationOrchestrator,
        stages,
        engine=scoring_engine,
    )

    pipeline = providers.Factory(
        CandidateFilterPipeline,
        discovery=discovery,
        stages=stages,
        engine=scoring_engine,
        max_concurrent_calls=config.pipeline.max_concurrent_calls,
    )

    service = providers.Factory(
        ProfileEvaluationService,
        orchestrator=orchestrator,
        pipeline=pipeline,
        engine=scoring_engine,
        query_builder=providers.Object(build_search_query),
        default_concurrency=config.pipeline.concurrency,
    )


def create_container(
    *, settings: dict[str, Any] | AppConfig | None = None
) -> EvaluationContainer:
    """Instantiate container with defaults overridden by ``settings``."""

    container = EvaluationContainer()
    defaults = AppConfig().to_settings()
    container.config.from_dict(defaults)

    if not settings:
        return container

    validated = settings if isinstance(settings, AppConfig) else AppConfig.model_validate(settings)
    container.config.from_dict(validated.to_settings())
    return container
