from shared.clients.ClientManager import ClientManager
from shared.clients.auth.AuthClientInterface import AuthClientInterface


class AuthClientManager(ClientManager):
    """Instantiates the configured identity verifier (AUTH_ENGINE)."""

    client_type = "auth"
    class_prefix = "AuthClient"
    default_engine = "firebase"

    def get_client(self) -> AuthClientInterface:
        return self.client
