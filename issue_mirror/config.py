"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from issue_mirror.utils.constants import DEFAULT_SNAPSHOT_MAX_BYTES


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    REPO: str | None = None

    # GitHub PAT settings
    GITHUB_PAT_TOKEN: str | None = None

    # GitHub App settings
    GITHUB_APP_ID: int | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_APP_INSTALLATION_ID: int | None = None

    # Storage settings
    DATABASE_URL: str = "sqlite:///./issue_mirror.db"

    # Sync settings
    SYNC_QUERY: str | None = None
    PROJECT_STATUS_FIELD: str | None = None
    SNAPSHOT_MAX_BYTES: int = DEFAULT_SNAPSHOT_MAX_BYTES


def get_settings() -> Settings:
    """Load settings from the environment and the .env file."""
    return Settings()
