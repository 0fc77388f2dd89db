"""Reference collaborators for extraction and discovery."""

from __future__ import annotations

from .discovery import SearchDiscovery, build_search_query
from .github import GitHubCodeExtractor
from .http import HTTPExtractor

__all__ = [
    "HTTPExtractor",
    "SearchDiscovery",
    "GitHubCodeExtractor",
    "build_search_query",
]
