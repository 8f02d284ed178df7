# Settings modules
from .app_settings import AppSettings, get_app_settings
from .application_settings import ApplicationSettings
from .database_settings import DatabaseSettings
from .payment_settings import PaymentSettings
from .tamara_settings import TamaraSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "ApplicationSettings",
    "DatabaseSettings",
    "PaymentSettings",
    "TamaraSettings",
]
