from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from core.settings.base_settings import OrderPayBaseSettings


class ApplicationSettings(OrderPayBaseSettings):
    """
    Process-wide settings.

    Env vars: APP_NAME, APP_ENVIRONMENT, APP_PUBLIC_BASE_URL,
    APP_DEFAULT_CURRENCY, APP_LOG_LEVEL
    """

    model_config = SettingsConfigDict(env_prefix="APP_")

    name: str = "orderpay"
    environment: str = "development"          # development | staging | production
    public_base_url: str = "http://localhost:8000"
    default_currency: str = Field("SAR", min_length=3, max_length=3)
    log_level: str = "INFO"

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @field_validator("public_base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"
