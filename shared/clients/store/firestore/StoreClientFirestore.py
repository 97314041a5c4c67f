from typing import Any

from firebase_admin import firestore_async
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.field_path import FieldPath

from shared.clients.exceptions import StoreError
from shared.clients.firebase.FirebaseApp import get_firebase_app
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.record import PurgeQuery, Record

# Firestore rejects commits with more writes than this
MAX_WRITES_PER_COMMIT = 500

_BACKEND_ERRORS = (GoogleAPIError, GoogleAuthError)


class StoreClientFirestore(StoreClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._database = self.get_config_val("DATABASE", default="(default)", val_type="string")
        self._db = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Firestore"

    def get_max_batch_size(self) -> int:
        return MAX_WRITES_PER_COMMIT

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="DATABASE", val_type="string", default="(default)"),
        ]

    ##########################################
    ############ LIFECYCLE ###################
    ##########################################

    async def boot(self) -> None:
        app = get_firebase_app(self._helper_config)
        self._db = firestore_async.client(app=app, database_id=self._database)

    async def close(self) -> None:
        self._db = None

    async def do_healthcheck(self) -> bool:
        try:
            async for _ in self._get_db().collections():
                break
        except _BACKEND_ERRORS as e:
            self.logging.warning("Firestore healthcheck failed: %s", e)
            return False
        return True

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_collection(self, collection: str) -> list[Record]:
        try:
            snapshots = await self._get_db().collection(collection).get()
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Reading collection '{collection}' failed: {e}", engine=self.get_engine_name()) from e
        return [self._to_record(snapshot) for snapshot in snapshots]

    async def do_fetch_page(self, query: PurgeQuery, cursor: str | None, limit: int) -> list[Record]:
        collection = self._get_db().collection(query.collection)
        page_query = (
            collection
            .where(filter=FieldFilter(query.field, "==", query.value))
            .order_by(FieldPath.document_id())
        )
        if cursor is not None:
            page_query = page_query.start_after({FieldPath.document_id(): collection.document(cursor)})
        page_query = page_query.limit(limit)

        try:
            snapshots = await page_query.get()
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Fetching page of {query.describe()} after {cursor!r} failed: {e}", engine=self.get_engine_name()) from e
        return [self._to_record(snapshot) for snapshot in snapshots]

    async def do_delete_many(self, collection: str, ids: list[str]) -> None:
        if not ids:
            return
        if len(ids) > MAX_WRITES_PER_COMMIT:
            raise ValueError(f"Cannot delete {len(ids)} records in one commit (max {MAX_WRITES_PER_COMMIT}).")

        db = self._get_db()
        batch = db.batch()
        for document_id in ids:
            batch.delete(db.collection(collection).document(document_id))
        try:
            await batch.commit()
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Deleting {len(ids)} records from '{collection}' failed: {e}", engine=self.get_engine_name()) from e

    async def do_get_document(self, collection: str, document_id: str) -> Record | None:
        try:
            snapshot = await self._get_db().collection(collection).document(document_id).get()
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Reading '{collection}/{document_id}' failed: {e}", engine=self.get_engine_name()) from e
        if not snapshot.exists:
            return None
        return self._to_record(snapshot)

    async def do_set_document(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        try:
            await self._get_db().collection(collection).document(document_id).set(fields)
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Writing '{collection}/{document_id}' failed: {e}", engine=self.get_engine_name()) from e

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _get_db(self):
        if self._db is None:
            raise Exception("Firestore client not initialised. Call boot() before making requests.")
        return self._db

    @staticmethod
    def _to_record(snapshot) -> Record:
        return Record(id=snapshot.id, data=snapshot.to_dict() or {})
