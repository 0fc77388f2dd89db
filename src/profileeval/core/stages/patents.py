"""Patents stage."""

from __future__ import annotations

from ...schemas.extraction import Dimension, PatentsResult
from .base import ExtractionStage


class PatentsStage(ExtractionStage):
    """Granted and filed patent counts. Legacy flag payloads become counts of one."""

    dimension = Dimension.PATENTS
    result_type = PatentsResult
