# Settings package
from core.settings.modules import (
    AppSettings,
    ApplicationSettings,
    DatabaseSettings,
    PaymentSettings,
    TamaraSettings,
    get_app_settings,
)

__all__ = [
    "get_app_settings",
    "AppSettings",
    "ApplicationSettings",
    "DatabaseSettings",
    "PaymentSettings",
    "TamaraSettings",
]
