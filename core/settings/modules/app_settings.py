from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from core.settings.modules.application_settings import ApplicationSettings
from core.settings.modules.database_settings import DatabaseSettings
from core.settings.modules.payment_settings import PaymentSettings
from core.settings.modules.tamara_settings import TamaraSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    app: ApplicationSettings
    database: DatabaseSettings
    payments: PaymentSettings
    tamara: TamaraSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    """Return cached global settings for the entire app."""
    return AppSettings(
        app=ApplicationSettings(),
        database=DatabaseSettings(),
        payments=PaymentSettings(),
        tamara=TamaraSettings(),
    )
