from abc import abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.record import PurgeQuery, Record


class StoreClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "store"
        """
        return "store"

    @abstractmethod
    def get_max_batch_size(self) -> int:
        """
        Returns the maximum number of deletes the backend accepts in one atomic commit.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_fetch_collection(self, collection: str) -> list[Record]:
        """Read every record of a collection, unpaged.

        Args:
            collection (str): The collection name.

        Returns:
            list[Record]: All records of the collection.

        Raises:
            StoreError: If the read fails.
        """
        pass

    @abstractmethod
    async def do_fetch_page(self, query: PurgeQuery, cursor: str | None, limit: int) -> list[Record]:
        """Fetch one page of records matching the query, ordered by record id.

        Args:
            query (PurgeQuery): Collection and field equality filter.
            cursor (str | None): Id of the last record of the previous page.
                                 None starts from the lowest id.
            limit (int): Maximum number of records in the page.

        Returns:
            list[Record]: Up to limit records with ids strictly greater than cursor.

        Raises:
            StoreError: If the query fails.
        """
        pass

    @abstractmethod
    async def do_delete_many(self, collection: str, ids: list[str]) -> None:
        """Delete records in one atomic commit. Deleting an absent id is not an error.

        Args:
            collection (str): The collection name.
            ids (list[str]): Ids of the records to delete, at most get_max_batch_size().

        Raises:
            StoreError: If the commit fails; then none of the ids were deleted.
        """
        pass

    @abstractmethod
    async def do_get_document(self, collection: str, document_id: str) -> Record | None:
        """Read a single record.

        Returns:
            Record | None: The record, or None if it does not exist.

        Raises:
            StoreError: If the read fails.
        """
        pass

    @abstractmethod
    async def do_set_document(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        """Create or overwrite a single record with exactly the given fields.

        Raises:
            StoreError: If the write fails.
        """
        pass

    ##########################################
    ############### PAGINATION ###############
    ##########################################

    async def iter_pages(self, query: PurgeQuery, page_size: int) -> AsyncIterator[list[Record]]:
        """Lazily page through all records matching the query, ordered by id.

        The next page is only requested once the consumer asks for it, so a
        consumer that deletes each page before moving on never sees it again.
        Iteration ends at the first empty page, which is not yielded.

        Args:
            query (PurgeQuery): Collection and field equality filter.
            page_size (int): Records per page. Values below 1 yield nothing.

        Yields:
            list[Record]: Non-empty pages in id order.
        """
        if page_size < 1:
            return
        cursor: str | None = None
        while True:
            page = await self.do_fetch_page(query, cursor=cursor, limit=page_size)
            if not page:
                return
            yield page
            cursor = page[-1].id
