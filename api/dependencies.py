"""
FastAPI Dependencies.

Provides dependency injection for services and the acting user.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional
from dotenv import load_dotenv
from fastapi import Header

# Load environment variables ONCE before any settings objects are created
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

from core.application.locks import KeyedLock
from core.application.services import (
    OrderApplicationService,
    PaymentApplicationService,
    PaymentGatewayRegistry,
)
from core.domain.exceptions import AuthorizationError
from core.domain.repositories import UnitOfWork
from core.infrastructure.adapters.gateways import MockPaymentGateway, TamaraPaymentGateway
from core.infrastructure.adapters.persistence import InMemoryStore, InMemoryUnitOfWork
from core.infrastructure.event_bus import InMemoryEventBus
from core.settings import get_app_settings

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON INSTANCES
# =============================================================================

_uow_factory: Optional[Callable[[], UnitOfWork]] = None
_locks: Optional[KeyedLock] = None
_event_bus: Optional[InMemoryEventBus] = None
_gateway_registry: Optional[PaymentGatewayRegistry] = None
_order_service: Optional[OrderApplicationService] = None
_payment_service: Optional[PaymentApplicationService] = None


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_uow_factory() -> Callable[[], UnitOfWork]:
    global _uow_factory
    if _uow_factory is None:
        settings = get_app_settings().database
        if settings.use_in_memory:
            store = InMemoryStore()
            _uow_factory = lambda: InMemoryUnitOfWork(store)  # noqa: E731
            logger.info("Using in-memory persistence")
        else:
            from core.infrastructure.database.config import get_engine, get_session_factory
            from core.infrastructure.database.unit_of_work import SQLAlchemyUnitOfWork

            session_factory = get_session_factory(get_engine(settings))
            _uow_factory = lambda: SQLAlchemyUnitOfWork(session_factory)  # noqa: E731
            logger.info("Using SQLAlchemy persistence")
    return _uow_factory


def get_locks() -> KeyedLock:
    global _locks
    if _locks is None:
        _locks = KeyedLock()
    return _locks


def get_event_bus() -> InMemoryEventBus:
    global _event_bus
    if _event_bus is None:
        _event_bus = InMemoryEventBus()
    return _event_bus


def get_gateway_registry() -> PaymentGatewayRegistry:
    """Build the provider registry once from settings."""
    global _gateway_registry

    if _gateway_registry is None:
        settings = get_app_settings()
        registry = PaymentGatewayRegistry()

        if settings.tamara.enabled:
            registry.register(TamaraPaymentGateway(
                settings.tamara,
                public_base_url=settings.app.public_base_url,
                timeout=settings.payments.gateway_timeout_seconds,
            ))

        if not settings.app.is_production:
            registry.register(MockPaymentGateway())

        if not registry.supported_providers():
            logger.warning("No payment gateways registered; every payment will be rejected")

        _gateway_registry = registry

    return _gateway_registry


def get_order_service() -> OrderApplicationService:
    global _order_service
    if _order_service is None:
        settings = get_app_settings()
        _order_service = OrderApplicationService(
            uow_factory=get_uow_factory(),
            locks=get_locks(),
            event_bus=get_event_bus(),
            number_attempts=settings.payments.reference_attempts,
            number_prefix=settings.payments.order_number_prefix,
            default_currency=settings.app.default_currency,
        )
        logger.info("Created OrderApplicationService instance")
    return _order_service


def get_payment_service() -> PaymentApplicationService:
    global _payment_service
    if _payment_service is None:
        settings = get_app_settings()
        _payment_service = PaymentApplicationService(
            uow_factory=get_uow_factory(),
            registry=get_gateway_registry(),
            order_service=get_order_service(),
            locks=get_locks(),
            event_bus=get_event_bus(),
            gateway_timeout=settings.payments.gateway_timeout_seconds,
            reference_attempts=settings.payments.reference_attempts,
            reference_prefix=settings.payments.payment_reference_prefix,
        )
        logger.info("Created PaymentApplicationService instance")
    return _payment_service


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Acting user, as asserted by the upstream authentication layer.

    Raises:
        AuthorizationError: If the X-User-Id header is missing
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthorizationError("Missing X-User-Id header")
    return x_user_id.strip()


# =============================================================================
# RESET (for testing)
# =============================================================================

async def close_dependencies() -> None:
    """Release gateway HTTP sessions."""
    if _gateway_registry is not None:
        for provider in _gateway_registry.supported_providers():
            gateway = _gateway_registry.get(provider)
            if isinstance(gateway, TamaraPaymentGateway):
                await gateway.close()


def reset_dependencies():
    global _uow_factory, _locks, _event_bus
    global _gateway_registry, _order_service, _payment_service

    _uow_factory = None
    _locks = None
    _event_bus = None
    _gateway_registry = None
    _order_service = None
    _payment_service = None
    get_app_settings.cache_clear()

    logger.info("Dependencies reset")
