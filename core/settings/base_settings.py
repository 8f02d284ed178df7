"""Shared base for every settings section."""
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class OrderPayBaseSettings(BaseSettings):
    """
    Reads from the process environment and, when present, a local .env file.

    Each section sets its own ``env_prefix``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
