"""Tests for the Algolia replace-all flow against a mocked REST backend."""

import asyncio
import base64
import json
from datetime import datetime, timezone

import httpx
import pytest

from shared.clients.exceptions import SearchIndexError
from shared.clients.index.algolia.IndexClientAlgolia import IndexClientAlgolia
from shared.models.record import IndexObject, Record


class FakeAlgolia:
    """Minimal Algolia REST double recording every request."""

    def __init__(self, fail_batches: bool = False, unpublished_polls: int = 0, html_batches: bool = False, cancel_batches: bool = False):
        self.requests: list[httpx.Request] = []
        self.fail_batches = fail_batches
        self.html_batches = html_batches
        self.cancel_batches = cancel_batches
        self.unpublished_polls = unpublished_polls
        self._next_task = 100

    def _task(self) -> httpx.Response:
        self._next_task += 1
        return httpx.Response(200, json={"taskID": self._next_task})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/operation") or path.endswith("/batch"):
            if path.endswith("/batch") and self.fail_batches:
                return httpx.Response(400, json={"message": "Record is too big"})
            if path.endswith("/batch") and self.html_batches:
                return httpx.Response(200, text="<html>proxy</html>")
            if path.endswith("/batch") and self.cancel_batches:
                raise asyncio.CancelledError()
            return self._task()
        if "/task/" in path:
            if self.unpublished_polls > 0:
                self.unpublished_polls -= 1
                return httpx.Response(200, json={"status": "notPublished"})
            return httpx.Response(200, json={"status": "published"})
        if request.method == "DELETE":
            return httpx.Response(200, json={"taskID": 1})
        if path == "/1/isalive":
            return httpx.Response(200, json={"message": "server is alive"})
        return httpx.Response(404)

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]

    def bodies(self, suffix: str) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.path.endswith(suffix)]


@pytest.fixture
def algolia_env(monkeypatch):
    monkeypatch.setenv("INDEX_ALGOLIA_APP_ID", "APPID")
    monkeypatch.setenv("INDEX_ALGOLIA_API_KEY", "secret")
    monkeypatch.setenv("INDEX_ALGOLIA_BATCH_SIZE", "2")
    monkeypatch.setenv("INDEX_ALGOLIA_TASK_POLL_INTERVAL", "0")
    monkeypatch.setenv("INDEX_ALGOLIA_TASK_MAX_POLLS", "5")


def _client(helper_config, backend: FakeAlgolia) -> IndexClientAlgolia:
    client = IndexClientAlgolia(helper_config=helper_config)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return client


def _objects(count: int) -> list[IndexObject]:
    return [IndexObject.from_record(Record(id=f"d{i}", data={"name": f"deck {i}"})) for i in range(count)]


class TestConfig:
    def test_missing_credentials_fail_at_construction(self, helper_config, monkeypatch):
        monkeypatch.delenv("INDEX_ALGOLIA_APP_ID", raising=False)
        monkeypatch.delenv("INDEX_ALGOLIA_API_KEY", raising=False)

        with pytest.raises(ValueError):
            IndexClientAlgolia(helper_config=helper_config)

    def test_default_host_uses_app_id(self, helper_config, algolia_env):
        client = IndexClientAlgolia(helper_config=helper_config)

        assert client._get_base_url() == "https://APPID.algolia.net"
        assert client.get_engine_name() == "algolia"


class TestReplaceAllObjects:
    @pytest.mark.asyncio
    async def test_copy_fill_move_sequence(self, helper_config, algolia_env):
        backend = FakeAlgolia()
        client = _client(helper_config, backend)

        await client.do_replace_all_objects("decks", _objects(3))

        operations = backend.bodies("/operation")
        assert operations[0]["operation"] == "copy"
        assert operations[0]["scope"] == ["settings", "synonyms", "rules"]
        tmp_index = operations[0]["destination"]
        assert tmp_index.startswith("decks_tmp_")
        assert operations[1] == {"operation": "move", "destination": "decks"}

        batches = backend.bodies("/batch")
        assert [len(batch["requests"]) for batch in batches] == [2, 1]
        sent = [req["body"] for batch in batches for req in batch["requests"]]
        assert sent == [{"objectID": f"d{i}", "name": f"deck {i}"} for i in range(3)]
        assert all(req["action"] == "addObject" for batch in batches for req in batch["requests"])

        paths = [path for _, path in backend.calls()]
        assert paths[0] == "/1/indexes/decks/operation"
        assert paths[-2] == f"/1/indexes/{tmp_index}/operation"
        assert paths[-1].startswith(f"/1/indexes/{tmp_index}/task/")

    @pytest.mark.asyncio
    async def test_sends_credentials(self, helper_config, algolia_env):
        backend = FakeAlgolia()
        client = _client(helper_config, backend)

        await client.do_replace_all_objects("users", _objects(1))

        headers = backend.requests[0].headers
        assert headers["X-Algolia-Application-Id"] == "APPID"
        assert headers["X-Algolia-API-Key"] == "secret"

    @pytest.mark.asyncio
    async def test_empty_object_list_still_replaces(self, helper_config, algolia_env):
        backend = FakeAlgolia()
        client = _client(helper_config, backend)

        await client.do_replace_all_objects("decks", [])

        assert backend.bodies("/batch") == []
        assert [op["operation"] for op in backend.bodies("/operation")] == ["copy", "move"]

    @pytest.mark.asyncio
    async def test_waits_until_tasks_are_published(self, helper_config, algolia_env):
        backend = FakeAlgolia(unpublished_polls=2)
        client = _client(helper_config, backend)

        await client.do_replace_all_objects("decks", _objects(1))

        task_polls = [path for _, path in backend.calls() if "/task/" in path]
        # copy, batch and move tasks plus two unpublished polls
        assert len(task_polls) == 5

    @pytest.mark.asyncio
    async def test_unpublished_task_times_out(self, helper_config, algolia_env):
        backend = FakeAlgolia(unpublished_polls=100)
        client = _client(helper_config, backend)

        with pytest.raises(SearchIndexError):
            await client.do_replace_all_objects("decks", _objects(1))

    @pytest.mark.asyncio
    async def test_batch_failure_drops_temporary_index(self, helper_config, algolia_env):
        backend = FakeAlgolia(fail_batches=True)
        client = _client(helper_config, backend)

        with pytest.raises(SearchIndexError):
            await client.do_replace_all_objects("decks", _objects(3))

        tmp_index = backend.bodies("/operation")[0]["destination"]
        assert ("DELETE", f"/1/indexes/{tmp_index}") in backend.calls()
        assert all(op["operation"] != "move" for op in backend.bodies("/operation"))

    @pytest.mark.asyncio
    async def test_transport_error_becomes_search_index_error(self, helper_config, algolia_env):
        def offline(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        client = IndexClientAlgolia(helper_config=helper_config)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(offline))

        with pytest.raises(SearchIndexError):
            await client.do_replace_all_objects("decks", _objects(1))

    @pytest.mark.asyncio
    async def test_non_json_answer_drops_temporary_index(self, helper_config, algolia_env):
        backend = FakeAlgolia(html_batches=True)
        client = _client(helper_config, backend)

        with pytest.raises(SearchIndexError, match="non-JSON"):
            await client.do_replace_all_objects("users", _objects(1))

        tmp_index = backend.bodies("/operation")[0]["destination"]
        assert ("DELETE", f"/1/indexes/{tmp_index}") in backend.calls()

    @pytest.mark.asyncio
    async def test_cancellation_drops_temporary_index(self, helper_config, algolia_env):
        backend = FakeAlgolia(cancel_batches=True)
        client = _client(helper_config, backend)

        with pytest.raises(asyncio.CancelledError):
            await client.do_replace_all_objects("users", _objects(1))

        tmp_index = backend.bodies("/operation")[0]["destination"]
        assert backend.calls()[-1] == ("DELETE", f"/1/indexes/{tmp_index}")
        assert all(op["operation"] != "move" for op in backend.bodies("/operation"))


class TestSerialization:
    def test_datetimes_become_iso_strings(self, helper_config, algolia_env):
        client = IndexClientAlgolia(helper_config=helper_config)
        created = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
        obj = IndexObject.from_record(Record(id="u1", data={"created": created, "tags": ("a", "b")}))

        assert client.serialize_objects([obj]) == [
            {"objectID": "u1", "created": "2024-05-01T08:30:00Z", "tags": ["a", "b"]}
        ]

    def test_references_become_paths(self, helper_config, algolia_env):
        class Reference:
            path = "decks/d1"

        client = IndexClientAlgolia(helper_config=helper_config)
        obj = IndexObject.from_record(Record(id="c1", data={"deck": Reference()}))

        assert client.serialize_objects([obj]) == [{"objectID": "c1", "deck": "decks/d1"}]

    def test_binary_fields_become_base64(self, helper_config, algolia_env):
        client = IndexClientAlgolia(helper_config=helper_config)
        obj = IndexObject.from_record(Record(id="r1", data={"blob": b"\xff\xfe"}))

        [serialized] = client.serialize_objects([obj])

        assert serialized["objectID"] == "r1"
        assert base64.urlsafe_b64decode(serialized["blob"]) == b"\xff\xfe"

    def test_unencodable_value_is_search_index_error(self, helper_config, algolia_env):
        class Unprintable:
            def __str__(self):
                raise ValueError("no text form")

        client = IndexClientAlgolia(helper_config=helper_config)
        obj = IndexObject.from_record(Record(id="r2", data={"odd": Unprintable()}))

        with pytest.raises(SearchIndexError, match="r2"):
            client.serialize_objects([obj])

    @pytest.mark.asyncio
    async def test_unencodable_record_fails_before_any_request(self, helper_config, algolia_env):
        class Unprintable:
            def __str__(self):
                raise ValueError("no text form")

        backend = FakeAlgolia()
        client = _client(helper_config, backend)
        obj = IndexObject.from_record(Record(id="r2", data={"odd": Unprintable()}))

        with pytest.raises(SearchIndexError):
            await client.do_replace_all_objects("users", [obj])

        assert backend.requests == []


class TestHealthcheck:
    @pytest.mark.asyncio
    async def test_isalive(self, helper_config, algolia_env):
        client = _client(helper_config, FakeAlgolia())

        assert await client.do_healthcheck() is True
