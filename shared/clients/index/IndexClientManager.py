from shared.clients.ClientManager import ClientManager
from shared.clients.index.IndexClientInterface import IndexClientInterface


class IndexClientManager(ClientManager):
    """Instantiates the configured search index client (INDEX_ENGINE)."""

    client_type = "index"
    class_prefix = "IndexClient"
    default_engine = "algolia"

    def get_client(self) -> IndexClientInterface:
        return self.client
