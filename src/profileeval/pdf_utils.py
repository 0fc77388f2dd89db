"""Utilities for loading profile documents as text."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

import pymupdf4llm

_DEFAULT_EXCLUDES: tuple[str, ...] = (
    "Curriculum Vitae",
    "Page",
)


def extract_document_text(
    path: str | Path,
    *,
    exclude_patterns: Sequence[str] | None = None,
) -> str:
    """Return the text of a CV or profile document.

    PDFs are converted to markdown with pymupdf4llm; any other file is read as
    UTF-8 text.

    Parameters
    ----------
    path:
        Path to the source document.
    exclude_patterns:
        Lines made up only of one of these strings, optionally followed by a
        page counter such as ``1 / 3``, are dropped. Defaults to common CV
        headers and footers; pass an empty list to keep every line.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    if path.suffix.lower() == ".pdf":
        text = pymupdf4llm.to_markdown(str(path))
    else:
        text = path.read_text(encoding="utf-8")

    excludes = list(exclude_patterns) if exclude_patterns is not None else list(_DEFAULT_EXCLUDES)
    patterns = _build_patterns(excludes)

    cleaned_lines: list[str] = []
    for line in text.splitlines():
        if line.strip() and any(pattern.fullmatch(line.strip()) for pattern in patterns):
            continue
        cleaned_lines.append(line)
    return "\n".join(cleaned_lines).strip()


def _build_patterns(excludes: Iterable[str]) -> list[re.Pattern[str]]:
    patterns: list[re.Pattern[str]] = []
    for text in excludes:
        escaped = re.escape(text)
        # Page counters appear as "1 / 3" or "1 of 3".
        patterns.append(re.compile(rf"{escaped}(?:\s+\d+(?:\s*(?:/|of)\s*\d+)?)?", re.IGNORECASE))
    return patterns


__all__ = ["extract_document_text"]
