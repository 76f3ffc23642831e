"""Centralized settings management for the sportshub ingestion core."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import make_url


class Settings(BaseSettings):
    """
    Application settings powered by pydantic-settings.

    Loads configuration from environment variables and a .env file located
    at the repository root.
    """

    # -------------------------------------------------------------------------
    # ENVIRONMENT
    # -------------------------------------------------------------------------
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------------------------------
    # DATABASE
    # -------------------------------------------------------------------------
    # Optional: without it the in-memory store is used.
    DATABASE_URL: str | None = None

    # -------------------------------------------------------------------------
    # PROVIDER API KEYS
    # -------------------------------------------------------------------------
    PERPLEXITY_API_KEY: SecretStr | None = None
    GOOGLE_MAPS_API_KEY: SecretStr | None = None

    # -------------------------------------------------------------------------
    # PATHS
    # -------------------------------------------------------------------------
    # BASE_DIR points to the sportshub package
    BASE_DIR: Path = Path(__file__).resolve().parents[1]

    INGESTION_CONFIG_PATH: Path = BASE_DIR / "configs" / "ingestion.yaml"

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_psycopg2_params(self) -> dict:
        """
        Parse DATABASE_URL into psycopg2-compatible connection parameters.

        Returns
        -------
        dict
            psycopg2 connection arguments (host, port, dbname, user, password).

        Raises
        ------
        ValueError
            If DATABASE_URL is not configured.
        """
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL is not configured")

        url = make_url(self.DATABASE_URL)
        return {
            "host": url.host,
            "port": url.port,
            "dbname": url.database,
            "user": url.username,
            "password": url.password,
        }

    @staticmethod
    def secret_value(value: SecretStr | None) -> str | None:
        """Unwrap an optional secret, treating blank strings as missing."""
        if value is None:
            return None
        raw = value.get_secret_value().strip()
        return raw or None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns
    -------
    Settings
        The singleton settings instance.
    """
    return Settings()
