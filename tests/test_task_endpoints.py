"""Integration tests for the /tasks endpoints."""

import pytest


@pytest.fixture
def greg(register_user, auth_headers):
    """Headers for a freshly registered user."""
    _, token = register_user()
    return auth_headers(token)


@pytest.fixture
def andrew(register_user, auth_headers):
    _, token = register_user(name="Andrew", email="andrew@example.com")
    return auth_headers(token)


def _create(client, headers, description, completed=False):
    response = client.post("/tasks", json={"description": description, "completed": completed}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _descriptions(response):
    assert response.status_code == 200, response.text
    return [task["description"] for task in response.json()["data"]]


class TestTaskEndpoints:
    """Test task CRUD API endpoints."""

    def test_create_task(self, test_client, greg):
        """Test POST /tasks endpoint."""
        response = test_client.post("/tasks", json={"description": "  Buy milk "}, headers=greg)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Task created"
        task = body["data"]
        assert task["description"] == "Buy milk"
        assert task["completed"] is False
        assert task["owner_id"]
        assert task["created_at"]

    def test_create_ignores_client_owner(self, test_client, greg):
        me = test_client.get("/users/me", headers=greg).json()["data"]
        task = test_client.post(
            "/tasks", json={"description": "mine", "owner_id": "someone-else"}, headers=greg
        ).json()["data"]
        assert task["owner_id"] == me["id"]

    def test_create_requires_description(self, test_client, greg):
        response = test_client.post("/tasks", json={"completed": True}, headers=greg)

        assert response.status_code == 400
        assert response.json()["data"]["violations"][0]["field"] == "description"

    def test_create_with_empty_body(self, test_client, greg):
        assert test_client.post("/tasks", headers=greg).status_code == 400

    def test_get_task_by_id(self, test_client, greg):
        """Test GET /tasks/{task_id} endpoint."""
        created = _create(test_client, greg, "Buy milk")
        response = test_client.get(f"/tasks/{created['id']}", headers=greg)

        assert response.status_code == 200
        assert response.json()["message"] == "Fetched task"
        assert response.json()["data"] == created

    def test_get_unknown_task(self, test_client, greg):
        response = test_client.get("/tasks/does-not-exist", headers=greg)
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Task not found"}

    def test_update_task(self, test_client, greg):
        created = _create(test_client, greg, "Buy milk")
        response = test_client.patch(f"/tasks/{created['id']}", json={"completed": True}, headers=greg)

        assert response.status_code == 200
        task = response.json()["data"]
        assert task["completed"] is True
        assert task["description"] == "Buy milk"

    def test_update_with_unknown_key_is_atomic(self, test_client, greg):
        created = _create(test_client, greg, "Buy milk")
        response = test_client.patch(
            f"/tasks/{created['id']}",
            json={"description": "Buy bread", "location": "store"},
            headers=greg,
        )

        assert response.status_code == 400
        assert test_client.get(f"/tasks/{created['id']}", headers=greg).json()["data"]["description"] == "Buy milk"

    def test_update_with_empty_body_changes_nothing(self, test_client, greg):
        created = _create(test_client, greg, "Buy milk")
        response = test_client.patch(f"/tasks/{created['id']}", json={}, headers=greg)

        assert response.status_code == 200
        assert response.json()["data"] == created

    def test_empty_update_of_unknown_task(self, test_client, greg):
        response = test_client.patch("/tasks/does-not-exist", json={}, headers=greg)
        assert response.status_code == 404

    def test_update_unknown_task(self, test_client, greg):
        response = test_client.patch("/tasks/does-not-exist", json={"completed": True}, headers=greg)
        assert response.status_code == 404

    def test_delete_task(self, test_client, greg):
        created = _create(test_client, greg, "Buy milk")
        response = test_client.delete(f"/tasks/{created['id']}", headers=greg)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == created["id"]
        assert test_client.get(f"/tasks/{created['id']}", headers=greg).status_code == 404
        assert test_client.delete(f"/tasks/{created['id']}", headers=greg).status_code == 404


class TestOwnership:
    """Another user's task is indistinguishable from a missing one."""

    def test_other_users_task_is_not_found(self, test_client, greg, andrew):
        task = _create(test_client, greg, "Greg's secret")

        assert test_client.get(f"/tasks/{task['id']}", headers=andrew).status_code == 404
        assert test_client.patch(
            f"/tasks/{task['id']}", json={"completed": True}, headers=andrew
        ).status_code == 404
        assert test_client.delete(f"/tasks/{task['id']}", headers=andrew).status_code == 404

        still_mine = test_client.get(f"/tasks/{task['id']}", headers=greg).json()["data"]
        assert still_mine["completed"] is False

    def test_list_is_scoped_to_caller(self, test_client, greg, andrew):
        _create(test_client, greg, "Greg's task")
        _create(test_client, andrew, "Andrew's task")

        assert _descriptions(test_client.get("/tasks", headers=greg)) == ["Greg's task"]
        assert _descriptions(test_client.get("/tasks", headers=andrew)) == ["Andrew's task"]

    def test_tasks_require_auth(self, test_client):
        assert test_client.get("/tasks").status_code == 401
        assert test_client.post("/tasks", json={"description": "x"}).status_code == 401


class TestListTasks:
    """Filter, sort and pagination on GET /tasks."""

    @pytest.fixture
    def seeded(self, test_client, greg):
        _create(test_client, greg, "b task", completed=False)
        _create(test_client, greg, "a task", completed=True)
        _create(test_client, greg, "c task", completed=False)

    def test_list_all(self, test_client, greg, seeded):
        response = test_client.get("/tasks", params={"sortBy": "description"}, headers=greg)
        assert response.json()["message"] == "Fetched tasks"
        assert _descriptions(response) == ["a task", "b task", "c task"]

    def test_filter_open(self, test_client, greg, seeded):
        response = test_client.get(
            "/tasks", params={"completed": "false", "sortBy": "description_asc"}, headers=greg
        )
        assert _descriptions(response) == ["b task", "c task"]

    def test_filter_done(self, test_client, greg, seeded):
        response = test_client.get("/tasks", params={"completed": "true"}, headers=greg)
        assert _descriptions(response) == ["a task"]

    def test_sort_description_desc(self, test_client, greg, seeded):
        response = test_client.get("/tasks", params={"sortBy": "description_desc"}, headers=greg)
        assert _descriptions(response) == ["c task", "b task", "a task"]

    def test_colon_sort_syntax(self, test_client, greg, seeded):
        response = test_client.get("/tasks", params={"sortBy": "description:desc"}, headers=greg)
        assert _descriptions(response) == ["c task", "b task", "a task"]

    def test_limit_and_skip(self, test_client, greg, seeded):
        response = test_client.get(
            "/tasks", params={"sortBy": "description", "limit": "1", "skip": "1"}, headers=greg
        )
        assert _descriptions(response) == ["b task"]

    def test_limit_zero_returns_everything(self, test_client, greg, seeded):
        response = test_client.get("/tasks", params={"limit": "0"}, headers=greg)
        assert len(_descriptions(response)) == 3

    def test_empty_list(self, test_client, greg):
        response = test_client.get("/tasks", headers=greg)
        assert response.status_code == 200
        assert response.json()["data"] == []

    @pytest.mark.parametrize("params", [
        {"completed": "maybe"},
        {"sortBy": "owner_id_desc"},
        {"limit": "-1"},
        {"skip": "ten"},
    ])
    def test_invalid_query(self, test_client, greg, params):
        response = test_client.get("/tasks", params=params, headers=greg)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["data"]["violations"]
