from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration.

    Loaded from environment variables and a .env file (if present) once per
    process; there is no hot-reload.
    """
    # Server
    app_name: str = "Suwanwet Farm"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./farm_orders.db"

    # Google Sheet webhook (replication disabled when unset)
    sheet_webhook_url: Optional[str] = None
    webhook_timeout_seconds: float = 10.0
    replication_queue_size: int = 1000
    replication_shutdown_grace_seconds: float = 5.0

    # orderTime in the sheet is rendered in this timezone
    timezone: str = "Asia/Bangkok"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return the AppConfig instance (singleton pattern)."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def set_config_for_test(**kwargs) -> AppConfig:
    """For testing only: override the AppConfig instance with new values."""
    global _config
    _config = AppConfig(**kwargs)
    return _config


def reset_config() -> None:
    global _config
    _config = None
