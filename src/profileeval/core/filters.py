"""Per-dimension pass/fail predicates used by the candidate pipeline."""

from __future__ import annotations

from typing import Callable

from ..schemas.extraction import (
    CodeResult,
    Dimension,
    EducationResult,
    ExtractionResult,
    OTHER_INSTITUTE_TIER,
    PatentsResult,
    PublicationsResult,
    TOP_INSTITUTE_TIER,
    WorkExperienceResult,
)
from ..schemas.filters import (
    CodeFilter,
    DimensionFilter,
    EducationFilter,
    PatentsFilter,
    PublicationsFilter,
    WorkExperienceFilter,
)

_FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "ai": ("ai", "artificial intelligence", "machine learning", "deep learning"),
    "computer science": ("computer science", "computer", "cs", "software"),
    "machine learning": ("machine learning", "ml", "deep learning", "ai"),
    "computer vision": ("computer vision", "cv", "image processing", "vision"),
    "nlp": ("nlp", "natural language", "text", "language processing"),
    "related fields": (
        "data science",
        "robotics",
        "statistics",
        "mathematics",
        "electrical",
        "electronics",
    ),
}


def degree_matches(expected: str, actual: str) -> bool:
    expected = expected.lower()
    actual = actual.lower()
    if "phd" in expected and not any(term in actual for term in ("phd", "ph.d", "doctor")):
        return False
    if "master" in expected and "master" not in actual and "m." not in actual:
        return False
    if "bachelor" in expected and "bachelor" not in actual and "b." not in actual:
        return False
    return True


def field_matches(expected: str, actual: str) -> bool:
    expected = expected.lower()
    actual = actual.lower()
    synonyms = _FIELD_SYNONYMS.get(expected)
    if synonyms is None:
        return expected in actual
    return any(term in actual for term in synonyms)


def tier_matches(expected: str, actual: str) -> bool:
    if expected == TOP_INSTITUTE_TIER:
        return "<300" in actual
    if expected == OTHER_INSTITUTE_TIER:
        return ">300" in actual
    return expected == actual


def check_education(result: EducationResult, criteria: EducationFilter) -> bool:
    """Only criteria whose extracted value is known are checked."""
    if criteria.degree and result.degree and not degree_matches(criteria.degree, result.degree):
        return False
    if (
        criteria.field_of_study
        and result.field_of_study
        and not field_matches(criteria.field_of_study, result.field_of_study)
    ):
        return False
    if (
        criteria.institute_tier
        and result.institute_tier
        and not tier_matches(criteria.institute_tier, result.institute_tier)
    ):
        return False
    return True


def check_publications(result: PublicationsResult, criteria: PublicationsFilter) -> bool:
    if criteria.min_publications and result.number_of_publications < criteria.min_publications:
        return False
    if criteria.min_citations and result.citations < criteria.min_citations:
        return False
    if criteria.min_h_index and result.h_index < criteria.min_h_index:
        return False
    venue = result.venue_quality
    if criteria.has_top_ai_conferences and not venue.has_top_ai_conference:
        return False
    if criteria.has_other_ai_conferences and not venue.has_other_ai_conference:
        return False
    if criteria.has_reputable_journals and not venue.has_reputable_journal:
        return False
    if criteria.has_other_journals and not venue.has_other_peer_reviewed:
        return False
    if criteria.experience_bracket and result.experience_bracket != criteria.experience_bracket:
        return False
    return True


def check_patents(result: PatentsResult, criteria: PatentsFilter) -> bool:
    if criteria.granted_first_inventor and not result.granted_first_inventor:
        return False
    granted = result.granted_first_inventor or result.granted_co_inventor
    if criteria.granted_co_inventor and not granted:
        return False
    if criteria.filed_patent and not (granted or result.filed_patent):
        return False
    return True


def check_code(result: CodeResult, criteria: CodeFilter) -> bool:
    if criteria.min_repositories and result.repo_volume < criteria.min_repositories:
        return False
    if (
        criteria.min_original_repositories
        and result.repo_initiative < criteria.min_original_repositories
    ):
        return False
    if criteria.min_stars and result.popularity < criteria.min_stars:
        return False
    if criteria.require_recent_activity and result.recent_activity <= 0:
        return False
    if criteria.require_ai_relevance and not result.ai_relevance:
        return False
    return True


def check_work_experience(result: WorkExperienceResult, criteria: WorkExperienceFilter) -> bool:
    if criteria.require_top_ai_organization and not result.top_ai_organizations:
        return False
    if criteria.require_mentorship and not result.mentorship_role:
        return False
    if criteria.require_dl_frameworks and not result.dl_frameworks:
        return False
    if criteria.min_impact_quality and result.impact_quality < criteria.min_impact_quality:
        return False
    if (
        criteria.min_years_of_experience
        and result.years_of_experience < criteria.min_years_of_experience
    ):
        return False
    return True


_PREDICATES: dict[Dimension, Callable[[ExtractionResult, DimensionFilter], bool]] = {
    Dimension.EDUCATION: check_education,
    Dimension.PUBLICATIONS: check_publications,
    Dimension.PATENTS: check_patents,
    Dimension.CODE: check_code,
    Dimension.WORK_EXPERIENCE: check_work_experience,
}


def passes_filter(
    dimension: Dimension,
    result: ExtractionResult,
    criteria: DimensionFilter,
) -> bool:
    """Return whether ``result`` satisfies the enabled filter for ``dimension``."""
    if not criteria.enabled:
        return True
    return _PREDICATES[dimension](result, criteria)


__all__ = [
    "passes_filter",
    "check_education",
    "check_publications",
    "check_patents",
    "check_code",
    "check_work_experience",
    "degree_matches",
    "field_matches",
    "tier_matches",
]
