"""Tests for the dashboard HTTP API."""

import pytest
from fastapi.testclient import TestClient

from habitcheck.core.database import DatabaseError
from habitcheck.dashboard.app import create_app


@pytest.fixture
def client(store):
    with TestClient(create_app(entry_store=store)) as test_client:
        yield test_client


def create_habit(client, **fields):
    payload = {"name": "Drink water", **fields}
    response = client.post("/api/habits/", json=payload)
    assert response.status_code == 201
    return response.json()["data"]


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["habits"] == 0


class TestHabitRoutes:

    def test_create_and_get(self, client):
        habit = create_habit(client, category="wellness")

        response = client.get(f"/api/habits/{habit['id']}")

        assert response.status_code == 200
        assert response.json()["category"] == "wellness"
        assert response.json()["entries"] == {}

    def test_blank_name_is_rejected(self, client):
        response = client.post("/api/habits/", json={"name": "   "})

        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_unknown_category_is_rejected(self, client):
        response = client.post("/api/habits/", json={"name": "Walk", "category": "sports"})
        assert response.status_code == 422

    def test_unknown_habit(self, client):
        response = client.get("/api/habits/missing")

        assert response.status_code == 404
        assert "missing" in response.json()["message"]

    def test_patch_keeps_entries(self, client):
        habit = create_habit(client)
        client.put(f"/api/habits/{habit['id']}/entries/2024-01-10", json={"completed": True, "notes": "ok"})

        response = client.patch(f"/api/habits/{habit['id']}", json={"name": "Drink tea"})

        data = response.json()["data"]
        assert data["name"] == "Drink tea"
        assert data["entries"] == {"2024-01-10": {"completed": True, "notes": "ok"}}

    def test_log_entry_with_bad_date(self, client):
        habit = create_habit(client)

        response = client.put(f"/api/habits/{habit['id']}/entries/2024-13-01", json={"completed": True})

        assert response.status_code == 422

    def test_toggle(self, client):
        habit = create_habit(client)

        first = client.post(f"/api/habits/{habit['id']}/entries/2024-01-10/toggle")
        second = client.post(f"/api/habits/{habit['id']}/entries/2024-01-10/toggle")

        assert first.json()["data"]["completed"] is True
        assert second.json()["data"]["completed"] is False

    def test_delete_twice(self, client):
        habit = create_habit(client)

        assert client.delete(f"/api/habits/{habit['id']}").status_code == 200
        assert client.delete(f"/api/habits/{habit['id']}").status_code == 404

    def test_failed_save_is_reported_as_warning(self, client, store, monkeypatch):
        def failing_save(habits, cough_logs):
            raise DatabaseError("disk full")

        monkeypatch.setattr(store.database, "save", failing_save)

        response = client.post("/api/habits/", json={"name": "Stretch"})

        assert response.status_code == 201
        assert "disk full" in response.json()["warning"]
        assert len(client.get("/api/habits/").json()) == 1


class TestCoughRoutes:

    def test_create_list_newest_first(self, client):
        client.post("/api/coughs/", json={"severity": 3, "timestamp": "2024-01-08T10:00:00Z"})
        client.post("/api/coughs/", json={"severity": 6, "timestamp": "2024-01-09T10:00:00Z"})

        logs = client.get("/api/coughs/").json()

        assert [log["severity"] for log in logs] == [6, 3]

    @pytest.mark.parametrize("severity", [0, 11])
    def test_severity_out_of_range(self, client, severity):
        response = client.post("/api/coughs/", json={"severity": severity})
        assert response.status_code == 422

    def test_update_and_delete(self, client):
        created = client.post("/api/coughs/", json={"severity": 4, "possible_triggers": [" dust ", ""]}).json()
        log_id = created["data"]["id"]
        assert created["data"]["possible_triggers"] == ["dust"]

        updated = client.patch(f"/api/coughs/{log_id}", json={"notes": "after vacuuming"}).json()
        assert updated["data"]["notes"] == "after vacuuming"
        assert updated["data"]["severity"] == 4

        assert client.delete(f"/api/coughs/{log_id}").status_code == 200
        assert client.get(f"/api/coughs/{log_id}").status_code == 404

    def test_delete_twice(self, client):
        log_id = client.post("/api/coughs/", json={"severity": 2}).json()["data"]["id"]

        assert client.delete(f"/api/coughs/{log_id}").status_code == 200
        response = client.delete(f"/api/coughs/{log_id}")

        assert response.status_code == 404
        assert log_id in response.json()["message"]


class TestStatsRoutes:

    def test_dashboard(self, client):
        habit = create_habit(client)
        client.put(f"/api/habits/{habit['id']}/entries/2024-01-10", json={"completed": True})
        client.post("/api/coughs/", json={
            "severity": 5,
            "timestamp": "2024-01-08T12:00:00Z",
            "possible_triggers": ["dust", "dust"],
        })
        client.post("/api/coughs/", json={
            "severity": 2,
            "timestamp": "2023-12-31T12:00:00Z",
            "possible_triggers": ["pollen"],
        })

        response = client.get("/api/stats/dashboard", params={"now": "2024-01-10T12:00:00Z"})

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_habits"] == 1
        assert stats["habit_completion_rate"] == 100
        assert stats["total_cough_incidents"] == 2
        assert stats["recent_cough_incidents"] == 1
        assert stats["top_triggers"] == [{"trigger": "dust", "count": 2}]
        assert [item["severity"] for item in stats["recent_activity"]] == [5, 2]

    def test_streaks(self, client):
        habit = create_habit(client)
        for day in ("2024-01-08", "2024-01-09"):
            client.put(f"/api/habits/{habit['id']}/entries/{day}", json={"completed": True})

        response = client.get("/api/stats/streaks", params={"now": "2024-01-10T12:00:00Z"})

        assert response.json() == [{"habit_id": habit["id"], "name": "Drink water", "streak": 2}]
