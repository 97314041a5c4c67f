"""Full reindex of one store collection into the search index of the same name."""

from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.record import IndexObject


class ReindexService:
    """Rebuilds search indexes wholesale from the store. No diffing, no paging."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        index_client: IndexClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._index = index_client

    async def do_reindex(self, collection: str) -> int:
        """Replace the index named after the collection with all its records.

        Args:
            collection (str): Store collection and index name.

        Returns:
            int: Number of objects pushed to the index.

        Raises:
            StoreError: If reading the collection fails.
            SearchIndexError: If replacing the index content fails.
        """
        self.logging.info("Reindexing collection '%s'...", collection)
        try:
            records = await self._store.do_fetch_collection(collection)
        except Exception as exc:
            self.logging.error("Reading collection '%s' for reindex failed: %s", collection, exc)
            raise

        objects = [IndexObject.from_record(record) for record in records]

        try:
            await self._index.do_replace_all_objects(collection, objects)
        except Exception as exc:
            self.logging.error("Replacing index '%s' failed: %s", collection, exc)
            raise

        self.logging.info("Reindexed collection '%s': %d object(s).", collection, len(objects))
        return len(objects)
