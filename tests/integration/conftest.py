"""Pytest configuration and fixtures for API integration tests."""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import (
    get_gateway_registry,
    get_order_service,
    get_payment_service,
)
from api.main import app
from core.application.locks import KeyedLock
from core.application.services import (
    OrderApplicationService,
    PaymentApplicationService,
    PaymentGatewayRegistry,
)
from core.infrastructure.adapters.gateways import MockPaymentGateway
from core.infrastructure.adapters.persistence import InMemoryStore, InMemoryUnitOfWork
from core.infrastructure.event_bus import InMemoryEventBus


API_USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}
WEBHOOK_SECRET = "api-webhook-secret"


@pytest.fixture
def api_gateway() -> MockPaymentGateway:
    return MockPaymentGateway(name="mock", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def test_client(api_gateway) -> TestClient:
    """FastAPI test client wired to in-memory persistence and the mock gateway."""
    store = InMemoryStore()
    locks = KeyedLock()
    event_bus = InMemoryEventBus()
    registry = PaymentGatewayRegistry()
    registry.register(api_gateway)

    order_service = OrderApplicationService(
        uow_factory=lambda: InMemoryUnitOfWork(store),
        locks=locks,
        event_bus=event_bus,
    )
    payment_service = PaymentApplicationService(
        uow_factory=lambda: InMemoryUnitOfWork(store),
        registry=registry,
        order_service=order_service,
        locks=locks,
        event_bus=event_bus,
        gateway_timeout=0.5,
    )

    app.dependency_overrides[get_order_service] = lambda: order_service
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    app.dependency_overrides[get_gateway_registry] = lambda: registry

    client = TestClient(app)
    yield client

    # Cleanup
    app.dependency_overrides.clear()


@pytest.fixture
def order_payload() -> dict:
    return {
        "items": [
            {
                "name": "Desk Lamp",
                "sku": "LAMP-001",
                "quantity": 2,
                "unit_price": "100.00",
                "discount_amount": "10.00",
            }
        ],
        "currency": "SAR",
    }


@pytest.fixture
def created_order(test_client, order_payload) -> dict:
    response = test_client.post("/api/v1/orders", json=order_payload, headers=API_USER)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def created_payment(test_client, created_order) -> dict:
    response = test_client.post(
        "/api/v1/payments",
        json={"order_id": created_order["id"], "provider": "mock", "amount": created_order["total"]},
        headers=API_USER,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def sql_test_client(monkeypatch) -> TestClient:
    """
    Test client over the real dependency wiring and an in-memory SQLite
    database (aiosqlite, StaticPool). The app lifespan creates the tables.
    """
    from api import dependencies

    monkeypatch.setenv("DB_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("DB_USE_IN_MEMORY", "false")
    monkeypatch.setenv("APP_ENVIRONMENT", "test")
    monkeypatch.setenv("TAMARA_ENABLED", "false")
    dependencies.reset_dependencies()

    with TestClient(app) as client:
        yield client

    dependencies.reset_dependencies()
