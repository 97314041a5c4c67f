from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.auth import Principal


class AuthClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "auth"
        """
        return "auth"

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_verify_token(self, token: str | None) -> Principal | None:
        """Verify a bearer credential against the trusted issuer.

        Args:
            token (str | None): The raw credential, without the "Bearer " prefix.

        Returns:
            Principal | None: The authenticated caller, or None if the
                              credential is missing, malformed, expired or
                              otherwise rejected. Never raises for a bad token.
        """
        pass
