from shared.clients.ClientManager import ClientManager
from shared.clients.store.StoreClientInterface import StoreClientInterface


class StoreClientManager(ClientManager):
    """Instantiates the configured document store client (STORE_ENGINE)."""

    client_type = "store"
    class_prefix = "StoreClient"
    default_engine = "firestore"

    def get_client(self) -> StoreClientInterface:
        return self.client
