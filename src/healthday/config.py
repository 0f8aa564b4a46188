"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All configuration is loaded from ``HEALTHDAY_*`` environment variables (or .env file)."""

    # --- App ---
    app_name: str = "healthday"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # --- Store ---
    store_backend: str = "memory"  # memory | apple_health_export
    export_path: str | None = None  # export.xml, required for apple_health_export

    # --- Aggregation config ---
    config_path: str | None = None  # overrides the bundled healthday_config.yaml

    model_config = SettingsConfigDict(
        env_prefix="HEALTHDAY_", env_file=".env", env_file_encoding="utf-8"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
