"""Integration tests for Orders API endpoints."""

from decimal import Decimal

from fastapi.testclient import TestClient

from tests.integration.conftest import API_USER, OTHER_USER


def test_create_order_success(test_client: TestClient, order_payload):
    """Test POST /orders - totals are computed server-side."""
    response = test_client.post("/api/v1/orders", json=order_payload, headers=API_USER)

    assert response.status_code == 201, f"Expected 201, got {response.status_code}: {response.text}"
    data = response.json()
    assert data["status"] == "pending"
    assert data["user_id"] == "user-1"
    assert data["order_number"].startswith("ORD-")
    assert Decimal(data["subtotal"]) == Decimal("190.00")
    assert Decimal(data["total"]) == Decimal("190.00")
    assert len(data["items"]) == 1

    # Verify data persistence by retrieving the order
    get_response = test_client.get(f"/api/v1/orders/{data['id']}")
    assert get_response.status_code == 200
    assert get_response.json()["order_number"] == data["order_number"]


def test_create_order_without_user_is_forbidden(test_client: TestClient, order_payload):
    response = test_client.post("/api/v1/orders", json=order_payload)

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_create_order_without_items(test_client: TestClient):
    response = test_client.post("/api/v1/orders", json={"items": []}, headers=API_USER)

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_create_order_with_invalid_item(test_client: TestClient, order_payload):
    order_payload["items"][0]["quantity"] = 0

    response = test_client.post("/api/v1/orders", json=order_payload, headers=API_USER)

    assert response.status_code == 422


def test_get_order_by_number(test_client: TestClient, created_order):
    response = test_client.get(f"/api/v1/orders/number/{created_order['order_number']}")

    assert response.status_code == 200
    assert response.json()["id"] == created_order["id"]


def test_get_order_not_found(test_client: TestClient):
    response = test_client.get("/api/v1/orders/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_list_orders(test_client: TestClient, order_payload):
    for headers in (API_USER, API_USER, OTHER_USER):
        test_client.post("/api/v1/orders", json=order_payload, headers=headers)

    everything = test_client.get("/api/v1/orders", params={"limit": 2}).json()
    mine = test_client.get("/api/v1/orders/mine", headers=OTHER_USER).json()

    assert everything["total"] == 2
    assert everything["limit"] == 2
    assert mine["total"] == 1


def test_update_order(test_client: TestClient, created_order):
    response = test_client.put(
        f"/api/v1/orders/{created_order['id']}",
        json={"notes": "Leave at reception"},
        headers=API_USER,
    )

    assert response.status_code == 200
    assert response.json()["notes"] == "Leave at reception"
    assert response.json()["total"] == created_order["total"]


def test_update_other_users_order(test_client: TestClient, created_order):
    response = test_client.put(
        f"/api/v1/orders/{created_order['id']}", json={"notes": "x"}, headers=OTHER_USER
    )

    assert response.status_code == 403


def test_delete_order(test_client: TestClient, created_order):
    response = test_client.delete(f"/api/v1/orders/{created_order['id']}", headers=API_USER)

    assert response.status_code == 204
    assert test_client.get(f"/api/v1/orders/{created_order['id']}").status_code == 404


def test_delete_order_with_captured_payment(test_client: TestClient, created_payment):
    test_client.patch(f"/api/v1/payments/{created_payment['id']}/capture")

    response = test_client.delete(f"/api/v1/orders/{created_payment['order_id']}", headers=API_USER)

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"
