"""Debounced search index resync.

A resync reindexes every tracked collection, but at most once per staleness
window. The window is tracked in a single marker document in the store. The
marker is overwritten *before* reindexing starts (claim-then-work): a second
call arriving while the first one is still reindexing sees a fresh marker and
skips. A failed reindex is therefore not retried until the window elapses.

This is a debounce, not a lock. Two calls reading the marker at the same
moment may both reindex; reindexing is a full overwrite, so that is harmless.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from services.index_sync.ReindexService import ReindexService
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.record import Record
from shared.models.results import ResyncResult

DEFAULT_COLLECTIONS = ["users", "decks"]
DEFAULT_STALENESS_HOURS = 24


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResyncScheduler:
    """Decides whether a resync is due, claims it and runs it."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        reindex_service: ReindexService,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._reindex = reindex_service
        self._clock = clock or _utc_now

        self._collections: list[str] = helper_config.get_list_val("SYNC_COLLECTIONS", default=DEFAULT_COLLECTIONS)
        self._staleness = timedelta(hours=helper_config.get_number_val("SYNC_STALENESS_HOURS", default=DEFAULT_STALENESS_HOURS))
        self._marker_collection = helper_config.get_string_val("SYNC_MARKER_COLLECTION", default="refresh")
        self._marker_document = helper_config.get_string_val("SYNC_MARKER_DOCUMENT", default="searchIndex")
        self._marker_field = helper_config.get_string_val("SYNC_MARKER_FIELD", default="lastSyncTime")

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_collections(self) -> list[str]:
        return list(self._collections)

    def get_staleness(self) -> timedelta:
        return self._staleness

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def is_due(self, marker: Record | None, now: datetime, staleness: timedelta | None = None) -> bool:
        """Check whether the marker is old enough for another resync.

        Due when the marker or its timestamp is missing, or when at least
        ``staleness`` has passed since the timestamp. Naive timestamps are
        read as UTC; unreadable values count as missing.
        """
        staleness = self._staleness if staleness is None else staleness
        if marker is None:
            return True
        last_sync = self._parse_timestamp(marker.data.get(self._marker_field))
        if last_sync is None:
            return True
        return now - last_sync >= staleness

    ##########################################
    ############### CORE SYNC ################
    ##########################################

    async def do_maybe_resync(
        self,
        staleness: timedelta | None = None,
        force: bool = False,
        collections: list[str] | None = None,
    ) -> ResyncResult:
        """Reindex all tracked collections if the last sync is stale.

        Args:
            staleness (timedelta | None): Debounce window, defaults to SYNC_STALENESS_HOURS.
            force (bool): Skip the staleness check. The marker is still claimed.
            collections (list[str] | None): Subset to reindex, defaults to SYNC_COLLECTIONS.

        Returns:
            ResyncResult: "skipped" without side effects, otherwise "succeeded"
                          or "failed" with the first error.
        """
        collections = self.get_collections() if collections is None else collections
        now = self._clock()

        try:
            if not force:
                marker = await self._store.do_get_document(self._marker_collection, self._marker_document)
                if not self.is_due(marker, now, staleness):
                    self.logging.info("Search index resync skipped: last sync is within %s.", staleness or self._staleness)
                    return ResyncResult(status="skipped")

            # claim before working
            await self._store.do_set_document(self._marker_collection, self._marker_document, {self._marker_field: now})
        except Exception as exc:
            self.logging.error("Search index resync could not read or claim the sync marker: %s", exc)
            return ResyncResult(status="failed", error=str(exc))

        self.logging.info("Search index resync claimed at %s for %s.", now.isoformat(), ", ".join(collections))

        results = await asyncio.gather(
            *[self._reindex.do_reindex(collection) for collection in collections],
            return_exceptions=True,
        )

        indexed: dict[str, int] = {}
        first_error: BaseException | None = None
        for collection, result in zip(collections, results):
            if isinstance(result, BaseException):
                first_error = first_error or result
                continue
            indexed[collection] = result

        if first_error is not None:
            self.logging.error(
                "Search index resync failed (%d of %d collection(s) reindexed): %s",
                len(indexed), len(collections), first_error,
            )
            return ResyncResult(status="failed", error=str(first_error), collections=collections, indexed=indexed)

        self.logging.info("Search index resync complete: %s", indexed)
        return ResyncResult(status="succeeded", collections=collections, indexed=indexed)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _parse_timestamp(self, value: Any) -> datetime | None:
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError:
                value = None
        if not isinstance(value, datetime):
            if value is not None:
                self.logging.warning("Sync marker field '%s' holds an unreadable value %r, treating it as missing.", self._marker_field, value)
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value
