"""Payment gateway registry tests."""
import pytest

from core.application.services import PaymentGatewayRegistry
from core.domain.exceptions import UnsupportedProviderError
from core.infrastructure.adapters.gateways import MockPaymentGateway


def test_register_under_gateway_name():
    registry = PaymentGatewayRegistry()
    gateway = MockPaymentGateway(name="mock")

    registry.register(gateway)

    assert registry.get("MOCK") is gateway
    assert registry.supports(" mock ")
    assert registry.supported_providers() == ["mock"]


def test_register_under_explicit_name():
    registry = PaymentGatewayRegistry()
    gateway = MockPaymentGateway(name="mock")

    registry.register(gateway, name="Tabby")

    assert registry.get("tabby") is gateway
    assert not registry.supports("mock")


def test_duplicate_registration_is_rejected():
    registry = PaymentGatewayRegistry()
    registry.register(MockPaymentGateway(name="mock"))

    with pytest.raises(ValueError, match="already registered"):
        registry.register(MockPaymentGateway(name="Mock"))


def test_gateway_without_name_is_rejected():
    with pytest.raises(ValueError, match="must have a name"):
        PaymentGatewayRegistry().register(MockPaymentGateway(name=""))


def test_unknown_provider_fails_closed():
    registry = PaymentGatewayRegistry()
    registry.register(MockPaymentGateway(name="mock"))

    with pytest.raises(UnsupportedProviderError):
        registry.get("paypal")
    assert not registry.supports("")
