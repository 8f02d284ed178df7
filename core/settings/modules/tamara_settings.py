from __future__ import annotations

from typing import Optional

from pydantic_settings import SettingsConfigDict

from core.settings.base_settings import OrderPayBaseSettings


class TamaraSettings(OrderPayBaseSettings):
    """
    Tamara (BNPL) gateway settings.

    Env vars: TAMARA_ENABLED, TAMARA_API_URL, TAMARA_API_TOKEN,
    TAMARA_NOTIFICATION_TOKEN, TAMARA_COUNTRY_CODE, TAMARA_PAYMENT_TYPE,
    TAMARA_LOCALE
    """

    model_config = SettingsConfigDict(env_prefix="TAMARA_")

    enabled: bool = False
    api_url: str = "https://api-sandbox.tamara.co"
    api_token: Optional[str] = None

    # HS256 secret used to sign notification tokens
    notification_token: Optional[str] = None

    country_code: str = "SA"
    payment_type: str = "PAY_BY_INSTALMENTS"
    locale: str = "en_US"
