"""Integration tests for health and root endpoints."""

from fastapi.testclient import TestClient


def test_health(test_client: TestClient):
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_readiness_lists_gateways(test_client: TestClient):
    response = test_client.get("/health/ready")

    assert response.json()["status"] == "ready"
    assert response.json()["checks"]["payment_gateways"] == ["mock"]


def test_root(test_client: TestClient):
    assert test_client.get("/").json()["health"] == "/health"
