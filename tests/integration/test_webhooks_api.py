"""Integration tests for the gateway webhook endpoint."""

from fastapi.testclient import TestClient

from tests.integration.conftest import WEBHOOK_SECRET


def _webhook(client: TestClient, payment: dict, status: str, token: str = WEBHOOK_SECRET):
    return client.post(
        "/api/v1/payments/webhook/mock",
        params={"tamaraToken": token},
        json={"order_id": payment["external_id"], "order_status": status},
    )


def test_webhook_applies_status(test_client: TestClient, created_payment):
    response = _webhook(test_client, created_payment, "approved")

    assert response.status_code == 200
    assert response.json() == {
        "outcome": "applied",
        "reason": None,
        "payment_id": created_payment["id"],
        "status": "authorized",
    }
    order = test_client.get(f"/api/v1/orders/{created_payment['order_id']}").json()
    assert order["status"] == "payment_authorized"


def test_duplicate_webhook_is_acknowledged(test_client: TestClient, created_payment):
    _webhook(test_client, created_payment, "approved")

    response = _webhook(test_client, created_payment, "approved")

    assert response.status_code == 200
    assert response.json()["outcome"] == "ignored"
    assert response.json()["reason"] == "duplicate"


def test_webhook_with_bad_token(test_client: TestClient, created_payment):
    response = _webhook(test_client, created_payment, "approved", token="forged")

    assert response.status_code == 401
    payment = test_client.get(f"/api/v1/payments/{created_payment['id']}").json()
    assert payment["status"] == "pending"


def test_webhook_token_query_parameter(test_client: TestClient, created_payment):
    response = test_client.post(
        "/api/v1/payments/webhook/mock",
        params={"token": WEBHOOK_SECRET},
        json={"order_id": created_payment["external_id"], "order_status": "captured"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "captured"


def test_webhook_malformed_body(test_client: TestClient):
    response = test_client.post(
        "/api/v1/payments/webhook/mock",
        params={"token": WEBHOOK_SECRET},
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422


def test_webhook_unknown_provider(test_client: TestClient):
    response = test_client.post(
        "/api/v1/payments/webhook/stripe",
        params={"token": WEBHOOK_SECRET},
        json={"order_id": "x", "order_status": "approved"},
    )

    assert response.status_code == 400


def test_webhook_unknown_payment_is_acknowledged(test_client: TestClient):
    response = test_client.post(
        "/api/v1/payments/webhook/mock",
        params={"token": WEBHOOK_SECRET},
        json={"order_id": "mock_unknown", "order_status": "approved"},
    )

    assert response.status_code == 200
    assert response.json()["reason"] == "unknown_payment"
