"""Shared firebase_admin app for every client backed by the Firebase project."""

import firebase_admin
from firebase_admin import credentials

from shared.helper.HelperConfig import HelperConfig

APP_NAME = "store_index_bridge"


def get_firebase_app(helper_config: HelperConfig) -> firebase_admin.App:
    """Return the named firebase_admin app, initialising it on first use.

    The service account is read from FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL
    and FIREBASE_PRIVATE_KEY. Escaped newlines in the private key are restored.

    Args:
        helper_config (HelperConfig): Source of the credential settings.

    Returns:
        firebase_admin.App: The initialised app.

    Raises:
        ValueError: If one of the credential settings is missing.
    """
    logging = helper_config.get_logger()
    try:
        return firebase_admin.get_app(name=APP_NAME)
    except ValueError:
        pass

    project_id = helper_config.get_string_val("FIREBASE_PROJECT_ID")
    cred = credentials.Certificate({
        "type": "service_account",
        "project_id": project_id,
        "client_email": helper_config.get_string_val("FIREBASE_CLIENT_EMAIL"),
        "private_key": helper_config.get_string_val("FIREBASE_PRIVATE_KEY").replace("\\n", "\n"),
        "token_uri": "https://oauth2.googleapis.com/token",
    })
    app = firebase_admin.initialize_app(cred, {"projectId": project_id}, name=APP_NAME)
    logging.info("Firebase app initialised for project '%s'.", project_id)
    return app
