"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SyncConfig:
    """Resolved configuration for the issue synchronization service.

    Built once at startup and never mutated afterwards.
    """

    debug: bool
    github_api_url: str
    github_token: str
    repository_owner: str
    repository_name: str
    tick_interval: float
    request_timeout: float
    page_size: int
    internal_authors: frozenset[str]
    chat_webhook_url: str
    comment_template: str
    notification_template: str
    store_url: str
    store_api_key: str
    store_table: str
    bootstrap_watermark: datetime

    @property
    def repository(self) -> str:
        """The repository in 'owner/repo' format."""
        return f"{self.repository_owner}/{self.repository_name}"
