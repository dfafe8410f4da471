"""Tests for health endpoints."""

from unittest.mock import Mock

from fastapi.testclient import TestClient


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_without_services(client: TestClient) -> None:
    """Readiness reports degraded until the services are wired."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["services"] is False
    assert "environment" in data
    assert "database" in data


def test_readiness_with_services(app, client: TestClient) -> None:
    """Readiness reports ready once the gating service exists."""
    app.state.gating_service = Mock()
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "coursegate"
    assert "version" in data
    assert "environment" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert "coursegate" in data["message"]
    assert "version" in data


def test_request_id_is_propagated(client: TestClient) -> None:
    """The request id header is echoed back."""
    response = client.get("/health/live", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
