"""Exception taxonomy for the search stack."""

from __future__ import annotations


class SearchError(Exception):
    """Base class for all search stack errors."""


class ConfigError(SearchError, ValueError):
    """Raised when an analyzer, similarity, ranking mode or preset is unknown."""


class QuerySyntaxError(SearchError, ValueError):
    """Raised when a free-text boolean query cannot be parsed."""

    def __init__(self, message: str, *, query: str = "", position: int | None = None) -> None:
        self.query = query
        self.position = position
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)


class IndexBuildError(SearchError, RuntimeError):
    """Raised when an index cannot be materialized. No partial index is published."""
