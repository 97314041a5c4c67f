"""Shared pytest fixtures: config plus in-memory store, index and auth clients."""

import logging
import os
import tempfile
from typing import Any

import pytest

# log files of the app module go to a throwaway directory
os.environ.setdefault("ROOT_DIR", tempfile.mkdtemp(prefix="store_index_bridge_tests_"))

from shared.clients.auth.AuthClientInterface import AuthClientInterface
from shared.clients.exceptions import SearchIndexError, StoreError
from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.models.auth import Principal
from shared.models.config import EnvConfig
from shared.models.record import IndexObject, PurgeQuery, Record


class MemoryStoreClient(StoreClientInterface):
    """Document store kept in dicts. Records every call in ``calls``."""

    def __init__(self, helper_config: HelperConfig, max_batch_size: int = 500):
        super().__init__(helper_config=helper_config)
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: list[tuple] = []
        self.max_batch_size = max_batch_size
        # 1-based number of the do_delete_many call that fails, if any
        self.fail_on_delete_call: int | None = None
        self.fail_on_fetch_page_call: int | None = None
        self.fail_reads: set[str] = set()
        self.fail_writes: bool = False
        self._delete_calls = 0
        self._fetch_page_calls = 0

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def get_max_batch_size(self) -> int:
        return self.max_batch_size

    async def boot(self) -> None:
        self.calls.append(("boot",))

    async def close(self) -> None:
        self.calls.append(("close",))

    async def do_healthcheck(self) -> bool:
        return True

    def add(self, collection: str, record_id: str, **fields: Any) -> None:
        self.collections.setdefault(collection, {})[record_id] = fields

    def ids(self, collection: str) -> list[str]:
        return sorted(self.collections.get(collection, {}))

    def data_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] not in ("boot", "close")]

    async def do_fetch_collection(self, collection: str) -> list[Record]:
        self.calls.append(("fetch_collection", collection))
        if collection in self.fail_reads:
            raise StoreError(f"read of {collection} refused", engine="memory")
        docs = self.collections.get(collection, {})
        return [Record(id=doc_id, data=dict(docs[doc_id])) for doc_id in sorted(docs)]

    async def do_fetch_page(self, query: PurgeQuery, cursor: str | None, limit: int) -> list[Record]:
        self.calls.append(("fetch_page", query.collection, cursor, limit))
        self._fetch_page_calls += 1
        if self.fail_on_fetch_page_call == self._fetch_page_calls:
            raise StoreError("page fetch refused", engine="memory")
        docs = self.collections.get(query.collection, {})
        matching = [
            doc_id for doc_id in sorted(docs)
            if docs[doc_id].get(query.field) == query.value and (cursor is None or doc_id > cursor)
        ]
        return [Record(id=doc_id, data=dict(docs[doc_id])) for doc_id in matching[:limit]]

    async def do_delete_many(self, collection: str, ids: list[str]) -> None:
        self.calls.append(("delete_many", collection, list(ids)))
        self._delete_calls += 1
        if self.fail_on_delete_call == self._delete_calls:
            raise StoreError("commit refused", engine="memory")
        docs = self.collections.get(collection, {})
        for doc_id in ids:
            docs.pop(doc_id, None)

    async def do_get_document(self, collection: str, document_id: str) -> Record | None:
        self.calls.append(("get_document", collection, document_id))
        if collection in self.fail_reads:
            raise StoreError(f"read of {collection} refused", engine="memory")
        data = self.collections.get(collection, {}).get(document_id)
        return None if data is None else Record(id=document_id, data=dict(data))

    async def do_set_document(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        self.calls.append(("set_document", collection, document_id, dict(fields)))
        if self.fail_writes:
            raise StoreError("write refused", engine="memory")
        self.collections.setdefault(collection, {})[document_id] = dict(fields)


class MemoryIndexClient(IndexClientInterface):
    """Search index kept in a dict of index name to serialized objects."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.indexes: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple] = []
        self.fail_indexes: set[str] = set()

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def _get_auth_header(self) -> dict:
        return {}

    def _get_base_url(self) -> str:
        return "http://index.invalid"

    def _get_endpoint_healthcheck(self) -> str:
        return "/health"

    async def do_replace_all_objects(self, index_name: str, objects: list[IndexObject]) -> None:
        self.calls.append(("replace_all", index_name, len(objects)))
        if index_name in self.fail_indexes:
            raise SearchIndexError(f"index {index_name} refused", engine="memory")
        self.indexes[index_name] = self.serialize_objects(objects)


class StaticAuthClient(AuthClientInterface):
    """Accepts exactly the tokens it was given."""

    def __init__(self, helper_config: HelperConfig, tokens: dict[str, str] | None = None):
        super().__init__(helper_config=helper_config)
        self.tokens = tokens or {}
        self.calls: list[str | None] = []

    def _get_engine_name(self) -> str:
        return "Static"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    async def boot(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def do_healthcheck(self) -> bool:
        return True

    async def do_verify_token(self, token: str | None) -> Principal | None:
        self.calls.append(token)
        uid = self.tokens.get(token or "")
        return Principal(uid=uid) if uid else None


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("tests")))


@pytest.fixture
def store_client(helper_config) -> MemoryStoreClient:
    return MemoryStoreClient(helper_config)


@pytest.fixture
def index_client(helper_config) -> MemoryIndexClient:
    return MemoryIndexClient(helper_config)


@pytest.fixture
def auth_client(helper_config) -> StaticAuthClient:
    return StaticAuthClient(helper_config, tokens={"good-token": "user-1"})
