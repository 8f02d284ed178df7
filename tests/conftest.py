"""Shared fixtures: in-memory persistence, a mock gateway and wired services."""
from decimal import Decimal

import pytest
import pytest_asyncio

from core.application.dtos import CreateOrderRequest, CreatePaymentRequest, OrderItemRequest
from core.application.locks import KeyedLock
from core.application.services import (
    OrderApplicationService,
    PaymentApplicationService,
    PaymentGatewayRegistry,
)
from core.infrastructure.adapters.gateways import MockPaymentGateway
from core.infrastructure.adapters.persistence import InMemoryStore, InMemoryUnitOfWork
from core.infrastructure.event_bus import InMemoryEventBus


USER_ID = "user-1"
OTHER_USER_ID = "user-2"
WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def event_bus():
    return InMemoryEventBus()


@pytest.fixture
def locks():
    return KeyedLock()


@pytest.fixture
def gateway():
    return MockPaymentGateway(name="mock", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def registry(gateway):
    registry = PaymentGatewayRegistry()
    registry.register(gateway)
    return registry


@pytest.fixture
def order_service(uow_factory, locks, event_bus):
    return OrderApplicationService(uow_factory=uow_factory, locks=locks, event_bus=event_bus)


@pytest.fixture
def payment_service(uow_factory, registry, order_service, locks, event_bus):
    return PaymentApplicationService(
        uow_factory=uow_factory,
        registry=registry,
        order_service=order_service,
        locks=locks,
        event_bus=event_bus,
        gateway_timeout=0.5,
    )


@pytest.fixture
def order_request():
    """One item, qty 2 at 100 with a 10 line discount: subtotal and total 190."""
    return CreateOrderRequest(
        items=[
            OrderItemRequest(
                name="Desk Lamp",
                sku="LAMP-001",
                quantity=2,
                unit_price=Decimal("100"),
                discount_amount=Decimal("10"),
            )
        ],
        currency="SAR",
    )


@pytest_asyncio.fixture
async def order(order_service, order_request):
    return await order_service.create_order(USER_ID, order_request)


@pytest_asyncio.fixture
async def payment(payment_service, order):
    return await payment_service.create_payment(
        USER_ID,
        CreatePaymentRequest(order_id=order.id, provider="mock", amount=Decimal("190")),
    )
