"""Outcome models of the background protocols.

These are only ever seen in logs and by the command-line runners; HTTP
callers get 202 before the protocols finish.
"""

from typing import Literal

from pydantic import BaseModel

from shared.models.record import PurgeQuery


class PurgeResult(BaseModel):
    """Progress of a finished purge.

    Attributes:
        query:   The purged query.
        pages:   Number of non-empty pages deleted.
        deleted: Number of records deleted across all pages.
    """

    query: PurgeQuery
    pages: int = 0
    deleted: int = 0


class ResyncResult(BaseModel):
    """Outcome of a maybe-resync call.

    Attributes:
        status:      "skipped" when the last sync is recent enough, otherwise
                     "succeeded" or "failed".
        error:       First error message when status is "failed".
        collections: Collections that were reindexed (empty when skipped).
        indexed:     Objects pushed per collection that reindexed successfully.
    """

    status: Literal["skipped", "succeeded", "failed"]
    error: str | None = None
    collections: list[str] = []
    indexed: dict[str, int] = {}

    @property
    def ran(self) -> bool:
        return self.status != "skipped"
