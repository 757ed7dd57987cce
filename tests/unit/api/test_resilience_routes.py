"""
Tests for the HTTP API.

This module tests:
- Health and readiness endpoints
- Resilience status, circuit reset and emergency toggle
- Notification listing and dismissal
- Substitute data endpoints (409 outside emergency mode)
- /metrics mount and CORS configuration
"""

import pytest
from fastapi.testclient import TestClient

from bank_resilience.main import create_app, get_cors_origins


@pytest.fixture
def client(test_settings, fake_redis):
    app = create_app(settings=test_settings, redis_client=fake_redis, monitor=False)
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# Health
# =============================================================================


class TestHealth:
    def test_health(self, client) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "1.0.0"}

    def test_readiness(self, client) -> None:
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "checks": {"redis": True, "resilience_layer": True},
        }

    def test_root(self, client) -> None:
        assert client.get("/").json()["service"] == "Banking Resilience Service"

    def test_metrics_endpoint(self, client) -> None:
        response = client.get("/metrics/")

        assert response.status_code == 200
        assert "bank_resilience_emergency_mode_active" in response.text


# =============================================================================
# Administration
# =============================================================================


class TestResilienceStatus:
    def test_status_of_healthy_layer(self, client) -> None:
        data = client.get("/v1/resilience/status").json()

        assert data["overall"] == {
            "level": "online",
            "label": "Backend Online",
            "has_issues": False,
        }
        assert data["circuit_breaker"]["state"] == "closed"
        assert data["emergency_mode"]["is_active"] is False
        assert data["throttle"] == {
            "request_counts": {},
            "rate_limit_windows": {},
            "backoff_attempts": {},
        }

    def test_circuit_reset(self, client) -> None:
        response = client.post("/v1/resilience/circuit/reset")

        assert response.status_code == 200
        assert response.json()["message"] == "Circuit breaker force reset complete"
        assert response.json()["circuit_breaker"]["failure_count"] == 0

    def test_emergency_toggle_with_reason(self, client) -> None:
        response = client.post(
            "/v1/resilience/emergency/toggle", json={"reason": "Scheduled maintenance"}
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is True
        assert response.json()["reason"] == "Scheduled maintenance"

        status = client.get("/v1/resilience/status").json()
        assert status["overall"]["level"] == "emergency"

    def test_emergency_toggle_without_body(self, client) -> None:
        first = client.post("/v1/resilience/emergency/toggle").json()
        second = client.post("/v1/resilience/emergency/toggle").json()

        assert first["is_active"] is True
        assert first["reason"] == "Manual toggle"
        assert second["is_active"] is False
        assert second["reason"] is None

    def test_layer_not_initialized_returns_503(self, test_settings, fake_redis) -> None:
        app = create_app(settings=test_settings, redis_client=fake_redis, monitor=False)
        client = TestClient(app)

        assert client.get("/v1/resilience/status").status_code == 503


# =============================================================================
# Notifications
# =============================================================================


class TestNotifications:
    def test_list_and_dismiss(self, client) -> None:
        feed = client.app.state.resilience.notifications
        notification = feed.notify(RuntimeError("permission denied"), "get-accounts")

        listed = client.get("/v1/resilience/notifications").json()
        assert len(listed) == 1
        assert listed[0]["title"] == "Service Error"
        assert listed[0]["message"] == "permission denied"
        assert listed[0]["operation_name"] == "get-accounts"

        assert client.delete(f"/v1/resilience/notifications/{notification.id}").status_code == 204
        assert client.delete(f"/v1/resilience/notifications/{notification.id}").status_code == 404
        assert client.get("/v1/resilience/notifications").json() == []


# =============================================================================
# Substitute Data
# =============================================================================


class TestEmergencyData:
    @pytest.mark.parametrize(
        "path",
        [
            "/v1/emergency/accounts",
            "/v1/emergency/transactions",
            "/v1/emergency/profile",
            "/v1/emergency/summary",
        ],
    )
    def test_conflict_when_inactive(self, client, path) -> None:
        response = client.get(path)

        assert response.status_code == 409
        assert response.json()["detail"] == "Emergency mode is not active"

    def test_datasets_when_active(self, client) -> None:
        client.post("/v1/resilience/emergency/toggle", json={"reason": "maintenance"})

        accounts = client.get("/v1/emergency/accounts").json()
        transactions = client.get("/v1/emergency/transactions", params={"limit": 5}).json()
        profile = client.get("/v1/emergency/profile").json()
        summary = client.get("/v1/emergency/summary").json()

        assert len(accounts) == 3
        assert all(account["mock_data"] for account in accounts)
        assert len(transactions) == 5
        assert profile["display_name"] == "Johnson Boseman"
        assert summary["credit_score"] == 850

    def test_transaction_limit_validated(self, client) -> None:
        client.post("/v1/resilience/emergency/toggle")
        assert client.get("/v1/emergency/transactions", params={"limit": 0}).status_code == 422


# =============================================================================
# CORS
# =============================================================================


class TestCorsOrigins:
    def test_development_allows_all(self, test_settings) -> None:
        assert get_cors_origins(test_settings) == ["*"]

    def test_production_uses_configured_origins(self, test_settings) -> None:
        settings = test_settings.model_copy(
            update={
                "environment": "production",
                "cors_origins": "https://bank.example.com, https://admin.example.com",
            }
        )
        assert get_cors_origins(settings) == [
            "https://bank.example.com",
            "https://admin.example.com",
        ]

    def test_production_without_origins(self, test_settings) -> None:
        settings = test_settings.model_copy(update={"environment": "production"})
        assert get_cors_origins(settings) == []
