"""
Tests for Schedules API
========================

Tests rule evaluation, due-item listing and day materialization endpoints.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


# ==================== EVALUATION TESTS ====================

class TestEvaluateRule:
    """Tests for the rule evaluation endpoint"""

    @pytest.mark.api
    def test_weekly_rule_on_tuesday(self, client: TestClient):
        response = client.post("/api/v1/schedules/evaluate", json={
            "rule": {"kind": "weekly", "days_of_week": [1, 3, 5], "time": "08:00"},
            "date": "2024-03-12"
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"due": False, "times": []}

    @pytest.mark.api
    def test_legacy_interval_rule(self, client: TestClient):
        response = client.post("/api/v1/schedules/evaluate", json={
            "rule": {"tipo": "intervalo", "intervalo_horas": 6, "inicio": "06:00"},
            "date": "2024-03-12"
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["times"] == ["06:00", "12:00", "18:00"]

    @pytest.mark.api
    def test_malformed_rule(self, client: TestClient):
        response = client.post("/api/v1/schedules/evaluate", json={
            "rule": {"kind": "interval", "every_hours": 30, "anchor": "06:00"},
            "date": "2024-03-12"
        })

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["error"] is True
        assert "every_hours" in data["message"]


# ==================== DUE ITEMS TESTS ====================

class TestDueItems:
    """Tests for the due-items endpoint"""

    @pytest.mark.api
    def test_due_items_for_monday(self, client: TestClient, test_profile, test_medication, test_routine):
        response = client.get(
            f"/api/v1/schedules/{test_profile.id}/due",
            params={"target_date": "2024-03-11"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["date"] == "2024-03-11"
        assert data["total"] == 2
        assert [i["title"] for i in data["items"]] == ["Caminhada", "Losartana"]

    @pytest.mark.api
    def test_due_items_for_tuesday(self, client: TestClient, test_profile, test_medication, test_routine):
        response = client.get(
            f"/api/v1/schedules/{test_profile.id}/due",
            params={"target_date": "2024-03-12"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert [i["item_id"] for i in response.json()["items"]] == [test_medication.id]

    @pytest.mark.api
    def test_unknown_profile(self, client: TestClient):
        response = client.get("/api/v1/schedules/99999/due")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] is True

    @pytest.mark.api
    def test_inactive_profile(self, client: TestClient, inactive_profile):
        response = client.get(f"/api/v1/schedules/{inactive_profile.id}/due")

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# ==================== MATERIALIZE TESTS ====================

class TestMaterialize:
    """Tests for the day materialization endpoint"""

    @pytest.mark.api
    def test_materialize_day(self, client: TestClient, test_profile, test_medication, test_routine):
        url = f"/api/v1/schedules/{test_profile.id}/materialize"

        first = client.post(url, params={"target_date": "2024-03-11"})
        second = client.post(url, params={"target_date": "2024-03-11"})

        assert first.status_code == status.HTTP_201_CREATED
        assert first.json()["total"] == 2
        assert sorted(e["id"] for e in first.json()["events"]) == \
            sorted(e["id"] for e in second.json()["events"])
        assert all(e["status"] == "pendente" for e in first.json()["events"])
