"""Education stage."""

from __future__ import annotations

from ...schemas.extraction import Dimension, EducationResult
from .base import ExtractionStage


class EducationStage(ExtractionStage):
    """Highest degree, field of study and institute tier."""

    dimension = Dimension.EDUCATION
    result_type = EducationResult
