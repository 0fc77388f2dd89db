from __future__ import annotations

from dependency_injector import providers

from profileeval.container import create_container
from profileeval.schemas import Dimension, ExtractionSet, WeightVector
from profileeval.schemas.config import AppConfig, load_config


def test_create_container_with_overrides(tmp_path):
    container = create_container(
        settings={
            "cache": {"directory": str(tmp_path / "cache"), "ttl_hours": 6},
            "scoring": {
                "weights": {"education": 0.4, "publications": 0.4, "patents": 0.1, "workExperience": 0.1}
            },
            "stages": {"max_attempts": 3, "retry_wait_seconds": 0},
            "pipeline": {"concurrency": 2, "max_concurrent_calls": 7},
            "collaborators": {
                "endpoints": {"education": "http://collab.local/education"},
                "github_token": "t0ken",
            },
        }
    )

    cache = container.cache()
    policy = container.stage_policy()
    engine = container.scoring_engine()
    pipeline = container.pipeline()
    orchestrator = container.orchestrator()

    assert cache.directory == tmp_path / "cache"
    assert cache._ttl_seconds == 6 * 3600
    assert policy.max_attempts == 3
    assert policy.retry_wait_seconds == 0
    assert engine.score(ExtractionSet()).weights == WeightVector(
        education=0.4, publications=0.4, patents=0.1, work_experience=0.1
    )
    assert pipeline._max_concurrent_calls == 7
    assert container.service()._default_concurrency == 2
    assert container.extractor()._endpoints == {"education": "http://collab.local/education"}
    assert container.code_extractor()._token == "t0ken"
    assert orchestrator.engine is engine
    assert orchestrator.stages[Dimension.EDUCATION]._cache is cache


def test_stages_share_the_generic_extractor_except_code(tmp_path):
    container = create_container(settings={"cache": {"directory": str(tmp_path)}})
    marker = object()
    container.extractor.override(providers.Object(marker))

    stages = container.orchestrator().stages

    for dimension, stage in stages.items():
        if dimension is not Dimension.CODE:
            assert stage._extractor is marker
    assert stages[Dimension.CODE]._extractor is container.code_extractor()


def test_load_config_validation():
    app_config = load_config({"pipeline": {"concurrency": 3}, "cache": {"ttl_hours": 1}})

    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings["pipeline"]["concurrency"] == 3
    assert settings["pipeline"]["max_concurrent_calls"] == 4
    assert "weights" not in settings["scoring"]
