from unittest.mock import MagicMock

from bson import ObjectId
from fastapi.testclient import TestClient

from todo_api.exceptions import StorageError
from todo_api.main import create_app
from todo_api.repositories import Repository

from conftest import make_settings

TODOS = "/api/todos"


def create_todo_payload(description="Test Task", completed=None):
    payload = {"description": description}
    if completed is not None:
        payload["completed"] = completed
    return payload


def assert_todo_shape(todo: dict):
    for key in ["id", "completed", "description"]:
        assert key in todo
    assert ObjectId.is_valid(todo["id"])
    assert isinstance(todo["completed"], bool)
    assert isinstance(todo["description"], str)


class TestHealth:
    def test_liveness(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "Backend is Live"
        assert data["backend"] == "memory"


class TestTodosCRUD:
    def test_create_todo_minimal(self, client):
        res = client.post(TODOS, json=create_todo_payload("buy milk"))
        assert res.status_code == 201
        body = res.json()
        assert body["message"] == "Todo Created Successfully"
        todo = body["data"]
        assert_todo_shape(todo)
        assert todo["description"] == "buy milk"
        assert todo["completed"] is False

    def test_create_assigns_distinct_ids(self, client):
        ids = {client.post(TODOS, json=create_todo_payload(f"Task {i}")).json()["data"]["id"] for i in range(5)}
        assert len(ids) == 5

    def test_create_null_completed_defaults_to_false(self, client):
        res = client.post(TODOS, json={"description": "x", "completed": None})
        assert res.status_code == 201
        assert res.json()["data"]["completed"] is False

    def test_create_from_form_body(self, client):
        res = client.post(TODOS, data={"description": "from a form", "completed": "true"})
        assert res.status_code == 201
        todo = res.json()["data"]
        assert todo["description"] == "from a form"
        assert todo["completed"] is True

    def test_create_with_trailing_slash(self, client):
        res = client.post(f"{TODOS}/", json=create_todo_payload("slash"), follow_redirects=False)
        assert res.status_code == 201
        assert res.json()["data"]["description"] == "slash"

        listed = client.get(f"{TODOS}/", follow_redirects=False)
        assert listed.status_code == 200
        assert [t["description"] for t in listed.json()] == ["slash"]

    def test_create_ignores_client_id(self, client):
        supplied = str(ObjectId())
        res = client.post(TODOS, json={"id": supplied, "_id": supplied, "description": "x"})
        assert res.status_code == 201
        assert res.json()["data"]["id"] != supplied

    def test_get_todo(self, client):
        created = client.post(TODOS, json=create_todo_payload("Read book", completed=True)).json()["data"]

        res = client.get(f"{TODOS}/{created['id']}")
        assert res.status_code == 200
        assert res.json() == created

    def test_get_missing_todo_is_server_error(self, client):
        res = client.get(f"{TODOS}/{ObjectId()}")
        assert res.status_code == 500
        assert res.json() == {"error": "Todo not found"}

    def test_patch_returns_previous_state(self, client):
        created = client.post(TODOS, json=create_todo_payload("Partial")).json()["data"]

        res = client.patch(f"{TODOS}/{created['id']}", json={"completed": True})
        assert res.status_code == 200
        body = res.json()
        assert body["message"] == "Todo Updated Successfully"
        # The response carries the todo as it was before the update
        assert body["data"] == created
        assert body["data"]["completed"] is False

        fetched = client.get(f"{TODOS}/{created['id']}").json()
        assert fetched["completed"] is True
        assert fetched["description"] == "Partial"

    def test_patch_description_only(self, client):
        created = client.post(TODOS, json=create_todo_payload("Old", completed=True)).json()["data"]

        res = client.patch(f"{TODOS}/{created['id']}", json={"description": "New", "priority": 3})
        assert res.status_code == 200

        fetched = client.get(f"{TODOS}/{created['id']}").json()
        assert fetched["description"] == "New"
        assert fetched["completed"] is True

    def test_patch_from_form_body(self, client):
        created = client.post(TODOS, json=create_todo_payload("form patch")).json()["data"]
        res = client.patch(f"{TODOS}/{created['id']}", data={"completed": "true"})
        assert res.status_code == 200
        assert client.get(f"{TODOS}/{created['id']}").json()["completed"] is True

    def test_patch_not_found(self, client):
        res = client.patch(f"{TODOS}/{ObjectId()}", json={"completed": True})
        assert res.status_code == 404
        assert res.json() == {"error": "Todo not found or failed to update"}

    def test_delete_todo(self, client):
        tid = client.post(TODOS, json=create_todo_payload("ToDelete")).json()["data"]["id"]

        res = client.delete(f"{TODOS}/{tid}")
        assert res.status_code == 200
        assert res.json() == {"message": "Todo Deleted Successfully"}

        assert client.get(f"{TODOS}/{tid}").status_code == 500

    def test_delete_missing_todo_still_succeeds(self, client):
        res = client.delete(f"{TODOS}/{ObjectId()}")
        assert res.status_code == 200
        assert res.json() == {"message": "Todo Deleted Successfully"}


class TestList:
    def test_empty_collection_returns_sentinel(self, client):
        res = client.get(TODOS)
        assert res.status_code == 200
        assert res.json() == {"data": "Todos Not Available"}

    def test_single_todo_is_listed(self, client):
        created = client.post(TODOS, json=create_todo_payload("only one")).json()["data"]
        res = client.get(TODOS)
        assert res.status_code == 200
        assert res.json() == [created]

    def test_list_keeps_insertion_order(self, client):
        descriptions = [f"Task {i}" for i in range(4)]
        for d in descriptions:
            client.post(TODOS, json=create_todo_payload(d))
        assert [t["description"] for t in client.get(TODOS).json()] == descriptions

    def test_list_after_deleting_everything_returns_sentinel(self, client):
        tid = client.post(TODOS, json=create_todo_payload("gone")).json()["data"]["id"]
        client.delete(f"{TODOS}/{tid}")
        assert client.get(TODOS).json() == {"data": "Todos Not Available"}


class TestValidationErrors:
    def test_create_empty_description(self, client, repo):
        res = client.post(TODOS, json={"description": ""})
        assert res.status_code == 400
        assert res.json() == {"error": "Todo Description cannot be empty"}
        assert repo.list_all() == []

    def test_create_missing_description(self, client, repo):
        res = client.post(TODOS, json={"completed": True})
        assert res.status_code == 400
        assert res.json() == {"error": "Todo Description cannot be empty"}
        assert repo.list_all() == []

    def test_create_blank_description(self, client, repo):
        res = client.post(TODOS, json={"description": "   "})
        assert res.status_code == 400
        assert repo.list_all() == []

    def test_create_malformed_body_is_server_error(self, client, repo):
        res = client.post(TODOS, content=b"{not json", headers={"content-type": "application/json"})
        assert res.status_code == 500
        assert res.json() == {"error": "Invalid request body"}
        assert repo.list_all() == []

    def test_create_wrong_field_type_is_server_error(self, client):
        res = client.post(TODOS, json={"description": "x", "completed": "yes"})
        assert res.status_code == 500

    def test_invalid_ids_are_client_errors(self, client, repo):
        created = client.post(TODOS, json=create_todo_payload("keep me")).json()["data"]
        for bad in ["123", "not-an-id", "zzzzzzzzzzzzzzzzzzzzzzzz", created["id"] + "0"]:
            assert client.get(f"{TODOS}/{bad}").status_code == 400
            assert client.patch(f"{TODOS}/{bad}", json={"completed": True}).status_code == 400
            res = client.delete(f"{TODOS}/{bad}")
            assert res.status_code == 400
            assert res.json() == {"error": "Invalid todo ID"}
        assert [t["description"] for t in repo.list_all()] == ["keep me"]
        assert repo.list_all()[0]["completed"] is False

    def test_patch_without_recognized_fields(self, client):
        created = client.post(TODOS, json=create_todo_payload("unchanged")).json()["data"]

        for body in ({}, {"title": "nope", "done": True}):
            res = client.patch(f"{TODOS}/{created['id']}", json=body)
            assert res.status_code == 400
            assert res.json() == {"error": "No valid fields to update"}

        assert client.get(f"{TODOS}/{created['id']}").json() == created

    def test_patch_malformed_body_is_client_error(self, client):
        created = client.post(TODOS, json=create_todo_payload("x")).json()["data"]
        url = f"{TODOS}/{created['id']}"

        for content in (b"", b"not json", b"[1, 2]", b'{"completed": "true"}', b'{"completed": null}'):
            res = client.patch(url, content=content, headers={"content-type": "application/json"})
            assert res.status_code == 400
            assert res.json() == {"error": "Invalid request body"}

        assert client.get(url).json() == created

    def test_patch_empty_description_rejected(self, client):
        created = client.post(TODOS, json=create_todo_payload("x")).json()["data"]
        res = client.patch(f"{TODOS}/{created['id']}", json={"description": ""})
        assert res.status_code == 400
        assert res.json() == {"error": "Todo Description cannot be empty"}
        assert client.get(f"{TODOS}/{created['id']}").json()["description"] == "x"


class TestStorageFailures:
    def _client(self, repo) -> TestClient:
        return TestClient(create_app(repository=repo, settings=make_settings()))

    def test_storage_error_maps_to_500(self):
        repo = MagicMock(spec=Repository)
        repo.list_all.side_effect = StorageError()
        repo.delete.side_effect = StorageError()
        with self._client(repo) as c:
            res = c.get(TODOS)
            assert res.status_code == 500
            assert res.json() == {"error": "Storage operation failed"}
            assert c.delete(f"{TODOS}/{ObjectId()}").status_code == 500

    def test_storage_error_on_get_create_and_patch(self):
        repo = MagicMock(spec=Repository)
        repo.get.side_effect = StorageError()
        repo.create.side_effect = StorageError()
        repo.update.side_effect = StorageError()
        with self._client(repo) as c:
            tid = str(ObjectId())
            responses = [
                c.get(f"{TODOS}/{tid}"),
                c.post(TODOS, json=create_todo_payload("x")),
                c.patch(f"{TODOS}/{tid}", json={"completed": True}),
            ]
            for res in responses:
                assert res.status_code == 500
                assert res.json() == {"error": "Storage operation failed"}

    def test_startup_builds_repository_from_settings(self):
        app = create_app(settings=make_settings(persistence_backend="memory"))
        with TestClient(app) as c:
            assert c.post(TODOS, json=create_todo_payload("built")).status_code == 201
            assert len(c.get(TODOS).json()) == 1

    def test_shutdown_closes_repository(self):
        repo = MagicMock(spec=Repository)
        with self._client(repo):
            pass
        repo.close.assert_called_once_with()


class TestEndToEnd:
    def test_full_lifecycle(self, client):
        res = client.post(TODOS, json={"description": "buy milk"})
        assert res.status_code == 201
        todo = res.json()["data"]
        assert todo["completed"] is False
        tid = todo["id"]

        assert client.get(f"{TODOS}/{tid}").json() == todo

        res = client.patch(f"{TODOS}/{tid}", json={"completed": True})
        assert res.status_code == 200
        assert res.json()["data"] == todo
        assert client.get(f"{TODOS}/{tid}").json()["completed"] is True

        assert client.delete(f"{TODOS}/{tid}").status_code == 200
        assert client.get(f"{TODOS}/{tid}").status_code >= 400


class TestCors:
    def test_any_origin_is_allowed(self, client):
        res = client.get(TODOS, headers={"Origin": "http://example.com"})
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] in ("*", "http://example.com")
        assert res.headers["access-control-allow-credentials"] == "true"
