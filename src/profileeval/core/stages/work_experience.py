"""Work experience stage."""

from __future__ import annotations

from ...schemas.extraction import Dimension, WorkExperienceResult
from .base import ExtractionStage


class WorkExperienceStage(ExtractionStage):
    """Assessment of professional experience.

    The collaborator receives the publications and code results of the same
    profile as context.
    """

    dimension = Dimension.WORK_EXPERIENCE
    result_type = WorkExperienceResult
