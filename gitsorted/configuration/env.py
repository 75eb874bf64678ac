"""Pydantic Settings model for application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


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
    TICK_INTERVAL: float | None = None
    REQUEST_TIMEOUT: float | None = None

    # GitHub settings
    GITHUB_API_URL: str | None = None
    GITHUB_TOKEN: str | None = None
    REPOSITORY_OWNER: str | None = None
    REPOSITORY_NAME: str | None = None
    PAGE_SIZE: int | None = None

    # Notification settings
    CHAT_WEBHOOK_URL: str | None = None
    INTERNAL_AUTHORS: str | None = None
    COMMENT_TEMPLATE: str | None = None
    NOTIFICATION_TEMPLATE: str | None = None

    # Store (PostgREST) settings
    STORE_URL: str | None = None
    STORE_API_KEY: str | None = None
    STORE_TABLE: str | None = None
    BOOTSTRAP_WATERMARK: str | None = None


settings = Settings()
