"""Custom exceptions for the workflow collector."""

from __future__ import annotations


class CollectionError(Exception):
    """A scrape cycle was aborted; no metrics from it were committed."""

    def __init__(self, message: str, repository: str | None = None) -> None:
        super().__init__(message)
        self.repository = repository
