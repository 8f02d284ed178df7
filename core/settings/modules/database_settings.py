from __future__ import annotations

from pydantic_settings import SettingsConfigDict

from core.settings.base_settings import OrderPayBaseSettings


class DatabaseSettings(OrderPayBaseSettings):
    """
    Database configuration settings.

    Env vars: DB_DATABASE_URL, DB_ECHO_SQL, DB_USE_IN_MEMORY, DB_POOL_SIZE,
    DB_MAX_OVERFLOW
    """

    model_config = SettingsConfigDict(env_prefix="DB_")

    database_url: str = "sqlite+aiosqlite:///./orderpay.db"
    echo_sql: bool = False

    # Skip the database entirely and keep state in process memory
    use_in_memory: bool = False

    # Connection pool (ignored for SQLite)
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")
