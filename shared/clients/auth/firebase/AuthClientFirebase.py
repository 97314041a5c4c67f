import asyncio

from firebase_admin import auth as firebase_auth

from shared.clients.auth.AuthClientInterface import AuthClientInterface
from shared.clients.firebase.FirebaseApp import get_firebase_app
from shared.helper.HelperConfig import HelperConfig
from shared.models.auth import Principal
from shared.models.config import EnvConfig

_REJECTIONS = (
    ValueError,
    firebase_auth.InvalidIdTokenError,
    firebase_auth.UserDisabledError,
    # raised with check_revoked when the token's user was deleted
    firebase_auth.UserNotFoundError,
)


class AuthClientFirebase(AuthClientInterface):
    """Verifies Firebase ID tokens."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._check_revoked = self.get_config_val("CHECK_REVOKED", default=False, val_type="bool")
        self._app = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Firebase"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="CHECK_REVOKED", val_type="bool", default=False),
        ]

    ##########################################
    ############ LIFECYCLE ###################
    ##########################################

    async def boot(self) -> None:
        self._app = get_firebase_app(self._helper_config)

    async def close(self) -> None:
        self._app = None

    async def do_healthcheck(self) -> bool:
        return self._app is not None

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_verify_token(self, token: str | None) -> Principal | None:
        if not token:
            return None
        if self._app is None:
            raise Exception("Firebase auth client not initialised. Call boot() before verifying tokens.")

        try:
            # verify_id_token may fetch Google's public certificates over the network
            claims = await asyncio.to_thread(
                firebase_auth.verify_id_token, token, app=self._app, check_revoked=self._check_revoked
            )
        except _REJECTIONS as e:
            self.logging.debug("Firebase token rejected: %s", e)
            return None
        except firebase_auth.CertificateFetchError as e:
            self.logging.error("Could not fetch Firebase certificates, rejecting token: %s", e)
            return None

        return Principal(uid=claims.get("uid") or claims.get("sub", ""), email=claims.get("email"), claims=claims)
