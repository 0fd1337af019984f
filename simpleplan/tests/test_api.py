"""
Tests for the HTTP API.

Tests cover:
1. API key check
2. Goal, action and completion endpoints
3. Day view endpoints
4. Error translation (404, 400, 503)
"""
import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

from simpleplan.exceptions import PersistenceException
from simpleplan.main import app

HEADERS = {"X-API-Key": "test-key"}


@pytest.fixture
def client(db_session):
    return TestClient(app)


def create_goal_with_action(client, recurrence=None):
    goal = client.post(
        "/api/goals",
        json={"title": "Get fit", "target_date": "2024-02-01"},
        headers=HEADERS
    ).json()
    action = client.post(
        f"/api/goals/{goal['id']}/actions",
        json={"name": "Run", "recurrence": recurrence or {"type": "daily"}},
        headers=HEADERS
    ).json()
    return goal, action


class TestAuth:
    def test_health_needs_no_key(self, client):
        response = client.get("/")
        assert response.status_code == 200

    def test_missing_key_rejected(self, client):
        assert client.get("/api/state").status_code == 401

    def test_wrong_key_rejected(self, client):
        assert client.get("/api/state", headers={"X-API-Key": "nope"}).status_code == 401


class TestGoalsAndActions:
    """Goal and action endpoints"""

    def test_create_goal_and_action(self, client):
        goal, action = create_goal_with_action(
            client, {"type": "custom", "custom_days": [3, 1]}
        )

        assert goal["title"] == "Get fit"
        assert action["goal_id"] == goal["id"]
        assert action["recurrence"] == {"type": "custom", "custom_days": [1, 3]}

        state = client.get("/api/state", headers=HEADERS).json()
        assert state["goals"][0]["actions"][0]["id"] == action["id"]

    def test_invalid_recurrence_rejected(self, client):
        goal, _ = create_goal_with_action(client)
        response = client.post(
            f"/api/goals/{goal['id']}/actions",
            json={"name": "Bad", "recurrence": {"type": "weekly", "weekly_day": 9}},
            headers=HEADERS
        )
        assert response.status_code == 422

    def test_set_completion_and_progress(self, client):
        goal, action = create_goal_with_action(client)

        response = client.put(
            f"/api/actions/{action['id']}/completions/2024-01-10",
            json={"completed": True},
            headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["completions"] == [{"day": "2024-01-10", "completed": True}]

        report = client.get(
            f"/api/goals/{goal['id']}/progress",
            params={"policy": "completion_ratio", "today": "2024-01-10"},
            headers=HEADERS
        ).json()
        assert report["goal_progress"] == 100
        assert report["policy"] == "completion_ratio"
        assert report["actions"][0]["recurrence_label"] == "Daily"

    def test_goal_list_and_calendar(self, client):
        goal, _ = create_goal_with_action(client)

        goals = client.get("/api/goals", headers=HEADERS).json()
        assert [item["goal_id"] for item in goals] == [goal["id"]]

        cells = client.get(
            f"/api/goals/{goal['id']}/calendar",
            params={"today": "2024-01-10"},
            headers=HEADERS
        ).json()
        assert len(cells) % 7 == 0

    def test_complete_and_delete_goal(self, client):
        goal, _ = create_goal_with_action(client)

        updated = client.put(
            f"/api/goals/{goal['id']}", json={"completed": True}, headers=HEADERS
        ).json()
        assert updated["completed"]
        assert updated["completed_at"] is not None

        assert client.delete(f"/api/goals/{goal['id']}", headers=HEADERS).status_code == 204
        assert client.get("/api/state", headers=HEADERS).json()["goals"] == []

    def test_unknown_goal_is_404(self, client):
        response = client.get("/api/goals/missing/progress", headers=HEADERS)
        assert response.status_code == 404

    def test_unknown_action_is_404(self, client):
        response = client.put(
            "/api/actions/missing/completions/2024-01-10",
            json={"completed": True},
            headers=HEADERS
        )
        assert response.status_code == 404


class TestDays:
    """Day view endpoints"""

    def test_get_and_edit_day(self, client):
        _, action = create_goal_with_action(client)
        client.post("/api/todos", json={"text": "Buy milk"}, headers=HEADERS)

        view = client.get("/api/days/2099-01-05", headers=HEADERS).json()
        assert view["total_count"] == 2
        assert view["progress"] == 0

        items = [dict(item, completed=True) for item in view["items"]]
        edited = client.put("/api/days/2099-01-05", json=items, headers=HEADERS).json()

        assert edited["progress"] == 100
        action_item = next(item for item in edited["items"] if item["kind"] == "action")
        assert action_item["action_id"] == action["id"]

    def test_todo_endpoints(self, client):
        todo = client.post("/api/todos", json={"text": "Buy milk"}, headers=HEADERS).json()

        updated = client.put(
            f"/api/todos/{todo['id']}", json={"completed": True}, headers=HEADERS
        ).json()
        assert updated["completed"]

        assert client.delete(f"/api/todos/{todo['id']}", headers=HEADERS).status_code == 204
        assert client.delete(f"/api/todos/{todo['id']}", headers=HEADERS).status_code == 404


class TestImportAndErrors:
    """Import and error translation"""

    def test_import_legacy_list(self, client):
        payload = [{"id": "g1", "title": "Old", "habits": [
            {"id": "h1", "name": "Read", "recurrence": "weekly"},
        ]}]

        state = client.post("/api/import", json=payload, headers=HEADERS).json()

        assert state["goals"][0]["actions"][0]["recurrence"] == {"type": "weekly", "weekly_day": 1}

    def test_import_garbage_is_400(self, client):
        response = client.post("/api/import", json="goals", headers=HEADERS)
        assert response.status_code == 400

    def test_storage_failure_is_503(self, client):
        with patch(
            "simpleplan.main.PlanStore.add_todo",
            side_effect=PersistenceException("add_todo", "disk full")
        ):
            response = client.post("/api/todos", json={"text": "x"}, headers=HEADERS)
        assert response.status_code == 503
