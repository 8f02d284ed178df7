"""Payment gateway adapters."""
from .mock_gateway import MockPaymentGateway
from .tamara_gateway import TamaraPaymentGateway

__all__ = ["MockPaymentGateway", "TamaraPaymentGateway"]
