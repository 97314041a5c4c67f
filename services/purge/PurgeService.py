"""Batched purge service.

Deletes every record matching a field equality filter, one id-ordered page
at a time. Each page is deleted in a single atomic commit; the purge as a
whole is not atomic but can be resumed by running it again with the same
query.
"""

import asyncio

from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.record import PurgeQuery
from shared.models.results import PurgeResult

DEFAULT_PAGE_SIZE = 100


class PurgeError(Exception):
    """A purge stopped early. Pages counted in ``result`` are already deleted."""

    def __init__(self, result: PurgeResult, cause: Exception):
        super().__init__(
            f"Purge of {result.query.describe()} failed after {result.pages} page(s) "
            f"and {result.deleted} deleted record(s): {cause}"
        )
        self.result = result
        self.cause = cause


class PurgeService:
    """Drains the records matching a PurgeQuery from the store."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._page_size = int(helper_config.get_number_val("PURGE_PAGE_SIZE", default=DEFAULT_PAGE_SIZE))
        self._validate_page_size(self._page_size)

    ##########################################
    ############### CORE PURGE ###############
    ##########################################

    async def do_purge(self, query: PurgeQuery, page_size: int | None = None) -> PurgeResult:
        """Delete all records matching the query.

        Pages are fetched lazily and deleted one at a time; control returns to
        the event loop between pages. A page size of 0 finishes immediately.

        Args:
            query (PurgeQuery): What to delete.
            page_size (int | None): Records per page, defaults to PURGE_PAGE_SIZE.

        Returns:
            PurgeResult: Pages and records deleted.

        Raises:
            ValueError: If page_size is negative or above the store's commit limit.
            PurgeError: If a page fetch or commit fails. Earlier pages stay deleted.
        """
        page_size = self._page_size if page_size is None else page_size
        self._validate_page_size(page_size)

        result = PurgeResult(query=query)
        self.logging.info("Starting purge of %s (page size %d)...", query.describe(), page_size)

        try:
            async for page in self._store.iter_pages(query, page_size):
                ids = [record.id for record in page]
                await self._store.do_delete_many(query.collection, ids)
                result.pages += 1
                result.deleted += len(ids)
                self.logging.debug(
                    "Purge of %s: page %d deleted (%d records, last id %r).",
                    query.describe(), result.pages, len(ids), ids[-1],
                )
                await asyncio.sleep(0)
        except Exception as exc:
            self.logging.error(
                "Purge of %s aborted after %d page(s), %d record(s) deleted: %s",
                query.describe(), result.pages, result.deleted, exc,
            )
            raise PurgeError(result, exc) from exc

        self.logging.info(
            "Purge of %s complete: %d record(s) deleted in %d page(s).",
            query.describe(), result.deleted, result.pages,
        )
        return result

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _validate_page_size(self, page_size: int) -> None:
        if page_size < 0:
            raise ValueError(f"Purge page size must not be negative, got {page_size}.")
        max_batch = self._store.get_max_batch_size()
        if page_size > max_batch:
            raise ValueError(
                f"Purge page size {page_size} exceeds the {self._store.get_engine_name()} commit limit of {max_batch}."
            )
