"""Configuration settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Repository settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+pysqlite:///:memory:"
    database_echo: bool = False

    # Logging
    log_level: str = "INFO"

    # Application
    app_name: str = "repokit"
    environment: str = "development"


def load_settings() -> Settings:
    """Load and validate settings from environment."""
    return Settings()
