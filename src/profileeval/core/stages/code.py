"""Code contribution stage."""

from __future__ import annotations

from ...schemas.extraction import CodeResult, Dimension
from .base import ExtractionStage


class CodeStage(ExtractionStage):
    dimension = Dimension.CODE
    result_type = CodeResult
