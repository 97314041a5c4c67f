from abc import abstractmethod
from typing import Any

from pydantic_core import to_jsonable_python

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.clients.exceptions import SearchIndexError
from shared.helper.HelperConfig import HelperConfig
from shared.models.record import IndexObject


def _jsonable_fallback(value: Any) -> Any:
    """Encode store-native values pydantic does not know (references, geo points)."""
    path = getattr(value, "path", None)
    if isinstance(path, str):
        return path
    if hasattr(value, "latitude") and hasattr(value, "longitude"):
        return {"lat": value.latitude, "lng": value.longitude}
    return str(value)


class IndexClientInterface(HttpClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "index"
        """
        return "index"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def serialize_objects(self, objects: list[IndexObject]) -> list[dict[str, Any]]:
        """Turn index objects into JSON-ready dicts.

        Datetimes become ISO-8601 strings, bytes URL-safe base64, document
        references their path and geo points a {"lat", "lng"} dict. Any other
        value pydantic cannot encode is sent as its str().

        Args:
            objects (list[IndexObject]): The objects to send.

        Returns:
            list[dict[str, Any]]: One JSON-ready dict per object, objectID included.

        Raises:
            SearchIndexError: If a value cannot be encoded.
        """
        serialized: list[dict[str, Any]] = []
        for obj in objects:
            try:
                serialized.append(to_jsonable_python(obj.model_dump(), fallback=_jsonable_fallback, bytes_mode="base64"))
            except (ValueError, TypeError) as e:
                raise SearchIndexError(f"Object '{obj.objectID}' cannot be encoded for the index: {e}", engine=self.get_engine_name()) from e
        return serialized

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_replace_all_objects(self, index_name: str, objects: list[IndexObject]) -> None:
        """Replace the whole content of an index with the given objects.

        Objects absent from the list are removed from the index. Index
        settings are kept.

        Args:
            index_name (str): The target index.
            objects (list[IndexObject]): The complete new content.

        Raises:
            SearchIndexError: If any step fails. The index may then be left
                              with its previous content.
        """
        pass
