from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from core.settings.base_settings import OrderPayBaseSettings


class PaymentSettings(OrderPayBaseSettings):
    """Payment engine tuning (PAYMENTS_ prefix)."""

    model_config = SettingsConfigDict(env_prefix="PAYMENTS_")

    gateway_timeout_seconds: float = Field(30.0, gt=0)
    reference_attempts: int = Field(3, ge=1)
    order_number_prefix: str = Field("ORD", pattern=r"^[A-Z]{2,8}$")
    payment_reference_prefix: str = Field("PAY", pattern=r"^[A-Z]{2,8}$")
