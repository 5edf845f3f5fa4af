"""
Tests for Reports API
======================

Tests the adherence report, history listing and health endpoints.
"""

import pytest
from datetime import datetime, date
from fastapi import status
from fastapi.testclient import TestClient


# ==================== FIXTURES ====================

@pytest.fixture
def ledger_history(test_profile, make_event):
    """Four occurrences: three confirmed, one missed"""
    return [
        make_event(test_profile, datetime(2024, 3, 1, 7, 0), status="confirmado",
                   confirmed_at=datetime(2024, 3, 1, 7, 10), item_id=1),
        make_event(test_profile, datetime(2024, 3, 1, 19, 0), status="confirmado",
                   confirmed_at=datetime(2024, 3, 1, 19, 0), item_id=2),
        make_event(test_profile, datetime(2024, 3, 2, 13, 0), status="perdido", item_id=1),
        make_event(test_profile, datetime(2024, 3, 2, 8, 0), status="tomado",
                   item_type="rotina", item_id=3),
    ]


# ==================== ADHERENCE REPORT TESTS ====================

class TestAdherenceReport:
    """Tests for the adherence report endpoint"""

    @pytest.mark.api
    def test_report(self, client: TestClient, test_profile, ledger_history):
        response = client.get(
            f"/api/v1/reports/{test_profile.id}/adherence",
            params={"start_date": "2024-03-01", "end_date": "2024-03-02"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["kpis"]["total_eventos"] == 4
        assert data["kpis"]["total_confirmados"] == 3
        assert data["kpis"]["taxa_adesao_total"] == 75.0
        assert data["kpis"]["pontualidade_media_minutos"] == 5.0
        assert data["by_time_of_day"]["tarde"]["esquecidos"] == 1
        assert data["by_item_type"]["rotina"]["percentual"] == 100.0
        assert [p["data"] for p in data["daily_trend"]] == ["2024-03-01", "2024-03-02"]

    @pytest.mark.api
    def test_report_filtered_by_type(self, client: TestClient, test_profile, ledger_history):
        response = client.get(
            f"/api/v1/reports/{test_profile.id}/adherence",
            params={"start_date": "2024-03-01", "end_date": "2024-03-02", "item_type": "medicamento"}
        )

        data = response.json()
        assert data["item_type"] == "medicamento"
        assert data["kpis"]["total_eventos"] == 3

    @pytest.mark.api
    def test_empty_report(self, client: TestClient, test_profile):
        response = client.get(
            f"/api/v1/reports/{test_profile.id}/adherence",
            params={"start_date": "2024-03-01", "end_date": "2024-03-31"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["kpis"]["taxa_adesao_total"] == 0
        assert data["kpis"]["pontualidade_media_minutos"] is None
        assert data["daily_trend"] == []
        assert set(data["by_time_of_day"]) == {"manha", "tarde", "noite"}

    @pytest.mark.api
    def test_reversed_range(self, client: TestClient, test_profile):
        response = client.get(
            f"/api/v1/reports/{test_profile.id}/adherence",
            params={"start_date": "2024-03-31", "end_date": "2024-03-01"}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_unknown_profile(self, client: TestClient):
        response = client.get(
            "/api/v1/reports/99999/adherence",
            params={"start_date": "2024-03-01", "end_date": "2024-03-31"}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


# ==================== HISTORY TESTS ====================

class TestHistory:
    """Tests for the history endpoint"""

    @pytest.mark.api
    def test_history(self, client: TestClient, test_profile, ledger_history):
        response = client.get(
            f"/api/v1/reports/{test_profile.id}/history",
            params={"start_date": "2024-03-01", "end_date": "2024-03-01"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_entries"] == 2
        assert [e["scheduled_at"] for e in data["entries"]] == [
            "2024-03-01T07:00:00", "2024-03-01T19:00:00"
        ]


# ==================== HEALTH TESTS ====================

class TestHealth:
    """Tests for service health endpoints"""

    @pytest.mark.api
    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "CareLedger"

    @pytest.mark.api
    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["database"] == "connected"
