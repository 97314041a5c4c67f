import asyncio
import uuid
from typing import Any
from urllib.parse import quote

import httpx

from shared.clients.exceptions import SearchIndexError
from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.record import IndexObject

# settings that survive a replace-all
COPY_SCOPE = ["settings", "synonyms", "rules"]


class IndexClientAlgolia(IndexClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._app_id = self.get_config_val("APP_ID", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._base_url = self.get_config_val("BASE_URL", default=f"https://{self._app_id}.algolia.net", val_type="string")
        self._batch_size = int(self.get_config_val("BATCH_SIZE", default=1000, val_type="number"))
        self._poll_interval = float(self.get_config_val("TASK_POLL_INTERVAL", default=0.5, val_type="number"))
        self._max_polls = int(self.get_config_val("TASK_MAX_POLLS", default=240, val_type="number"))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Algolia"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="APP_ID", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="BATCH_SIZE", val_type="number", default=1000),
            EnvConfig(env_key="TASK_POLL_INTERVAL", val_type="number", default=0.5),
            EnvConfig(env_key="TASK_MAX_POLLS", val_type="number", default=240),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {
            "X-Algolia-Application-Id": self._app_id,
            "X-Algolia-API-Key": self._api_key,
        }

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/1/isalive"

    def _get_endpoint_index(self, index_name: str) -> str:
        return f"/1/indexes/{quote(index_name, safe='')}"

    def _get_endpoint_batch(self, index_name: str) -> str:
        return f"{self._get_endpoint_index(index_name)}/batch"

    def _get_endpoint_operation(self, index_name: str) -> str:
        return f"{self._get_endpoint_index(index_name)}/operation"

    def _get_endpoint_task(self, index_name: str, task_id: int) -> str:
        return f"{self._get_endpoint_index(index_name)}/task/{task_id}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_batch_payload(self, objects: list[dict[str, Any]]) -> dict:
        return {"requests": [{"action": "addObject", "body": obj} for obj in objects]}

    def get_operation_payload(self, operation: str, destination: str, scope: list[str] | None = None) -> dict:
        payload: dict[str, Any] = {"operation": operation, "destination": destination}
        if scope:
            payload["scope"] = scope
        return payload

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_replace_all_objects(self, index_name: str, objects: list[IndexObject]) -> None:
        """Replace an index atomically through a temporary copy.

        Copies settings, synonyms and rules into a temporary index, fills it
        in batches, then moves it over the target. The target keeps serving
        its old content until the final move is published.
        """
        tmp_index = f"{index_name}_tmp_{uuid.uuid4().hex[:12]}"
        records = self.serialize_objects(objects)
        try:
            copy_task = await self._do_operation(index_name, "copy", tmp_index, scope=COPY_SCOPE)
            await self.do_wait_for_task(index_name, copy_task)

            batch_tasks: list[int] = []
            for batch_start in range(0, len(records), self._batch_size):
                batch = records[batch_start: batch_start + self._batch_size]
                response = await self._do_json_request("POST", self._get_endpoint_batch(tmp_index), self.get_batch_payload(batch))
                batch_tasks.append(response["taskID"])
            for task_id in batch_tasks:
                await self.do_wait_for_task(tmp_index, task_id)

            move_task = await self._do_operation(tmp_index, "move", index_name)
            await self.do_wait_for_task(tmp_index, move_task)
        except (SearchIndexError, httpx.HTTPError, KeyError, ValueError) as e:
            await self._do_drop_index_quietly(tmp_index)
            if isinstance(e, SearchIndexError):
                raise
            raise SearchIndexError(f"Replacing objects of index '{index_name}' failed: {e!r}", engine=self.get_engine_name()) from e
        except BaseException:
            # cancelled mid-replace; the target still holds its old content
            await self._do_drop_index_quietly(tmp_index)
            raise

        self.logging.info("Replaced index '%s' with %d objects.", index_name, len(records))

    async def do_wait_for_task(self, index_name: str, task_id: int) -> None:
        """Poll a task until Algolia reports it as published.

        Raises:
            SearchIndexError: If the task is not published within the poll budget.
        """
        for _ in range(self._max_polls):
            response = await self._do_json_request("GET", self._get_endpoint_task(index_name, task_id))
            if response.get("status") == "published":
                return
            await asyncio.sleep(self._poll_interval)
        raise SearchIndexError(
            f"Task {task_id} on index '{index_name}' was not published after {self._max_polls} polls.",
            engine=self.get_engine_name(),
        )

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _do_operation(self, index_name: str, operation: str, destination: str, scope: list[str] | None = None) -> int:
        response = await self._do_json_request(
            "POST",
            self._get_endpoint_operation(index_name),
            self.get_operation_payload(operation, destination, scope),
        )
        return response["taskID"]

    async def _do_json_request(self, method: str, endpoint: str, payload: dict | None = None) -> dict:
        response = await self.do_request(method=method, endpoint=endpoint, json=payload)
        if not response.is_success:
            raise SearchIndexError(
                f"{method} {endpoint} failed with status {response.status_code}: {response.text}",
                engine=self.get_engine_name(),
            )
        try:
            return response.json()
        except ValueError as e:
            raise SearchIndexError(
                f"{method} {endpoint} answered status {response.status_code} with a non-JSON body: {response.text[:200]!r}",
                engine=self.get_engine_name(),
            ) from e

    async def _do_drop_index_quietly(self, index_name: str) -> None:
        try:
            response = await self.do_request(method="DELETE", endpoint=self._get_endpoint_index(index_name))
        except httpx.HTTPError as e:
            self.logging.warning("Could not drop temporary index '%s': %s", index_name, e)
            return
        if not response.is_success and response.status_code != 404:
            self.logging.warning("Could not drop temporary index '%s' (status %d).", index_name, response.status_code)
