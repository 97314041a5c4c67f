"""Errors raised by the external client families."""


class ClientError(Exception):
    """Base error of every backend client."""

    def __init__(self, message: str, engine: str | None = None):
        super().__init__(message)
        self.engine = engine


class StoreError(ClientError):
    """A document store read, query, commit or write failed."""


class SearchIndexError(ClientError):
    """A search index request failed or a task was never published."""
