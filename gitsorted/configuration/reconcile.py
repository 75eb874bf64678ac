"""Reconciles configuration between CLI arguments and environment variables."""

from datetime import datetime
from typing import Any

import jinja2
import structlog

from gitsorted.configuration.env import settings
from gitsorted.configuration.exceptions import InvalidConfigurationElementError, RequiredConfigurationElementError
from gitsorted.configuration.models import SyncConfig
from gitsorted.utils.constants import (
    BOOTSTRAP_WATERMARK,
    DEFAULT_COMMENT_TEMPLATE,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_NOTIFICATION_TEMPLATE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_STORE_TABLE,
    DEFAULT_TICK_INTERVAL,
    MAX_PAGE_SIZE,
)
from gitsorted.utils.github import split_repository
from gitsorted.utils.templates import construct_jinja2_template_from_string
from gitsorted.utils.timestamps import parse_timestamp

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _first_set(*values: Any) -> Any:
    """Return the first value that is not None, so explicit zeros are kept for validation."""
    return next((value for value in values if value is not None), None)


def _require(value: str | None, name: str, cli_name: str, env_name: str) -> str:
    if not value:
        raise RequiredConfigurationElementError(name=name, cli_name=cli_name, env_name=env_name)
    return value


def parse_internal_authors(raw: str | None) -> frozenset[str]:
    """Parse a comma separated list of author handles, ignoring blanks."""
    if not raw:
        return frozenset()
    return frozenset(handle.strip() for handle in raw.split(",") if handle.strip())


def _validate_template(name: str, template: str) -> str:
    try:
        construct_jinja2_template_from_string(template)
    except jinja2.TemplateSyntaxError as exc:
        raise InvalidConfigurationElementError(name, f"template syntax error: {exc}") from exc
    return template


def _parse_bootstrap_watermark(raw: str | None) -> datetime:
    if not raw:
        return BOOTSTRAP_WATERMARK
    try:
        return parse_timestamp(raw)
    except ValueError as exc:
        raise InvalidConfigurationElementError("bootstrap watermark", str(exc)) from exc


async def reconcile_sync_configuration(
    cli_debug: bool = False,
    cli_github_api_url: str | None = None,
    cli_github_token: str | None = None,
    cli_repo: str | None = None,
    cli_repository_owner: str | None = None,
    cli_repository_name: str | None = None,
    cli_tick_interval: float | None = None,
    cli_request_timeout: float | None = None,
    cli_page_size: int | None = None,
    cli_internal_authors: str | None = None,
    cli_chat_webhook_url: str | None = None,
    cli_comment_template: str | None = None,
    cli_notification_template: str | None = None,
    cli_store_url: str | None = None,
    cli_store_api_key: str | None = None,
    cli_store_table: str | None = None,
    cli_bootstrap_watermark: str | None = None,
) -> SyncConfig:
    """Reconciles the synchronization configuration.

    Values passed on the command line take precedence over environment
    variables (and the ``.env`` file), which take precedence over defaults.

    Raises:
        RequiredConfigurationElementError: If a required element is missing.
        InvalidConfigurationElementError: If an element is present but unusable.
    """
    debug = cli_debug or settings.DEBUG

    repository_owner = cli_repository_owner or settings.REPOSITORY_OWNER
    repository_name = cli_repository_name or settings.REPOSITORY_NAME
    if cli_repo:
        try:
            repository_owner, repository_name = split_repository(cli_repo)
        except ValueError as exc:
            raise InvalidConfigurationElementError("repository", str(exc)) from exc

    github_token = _require(cli_github_token or settings.GITHUB_TOKEN, "GitHub token", "--github-token", "GITHUB_TOKEN")
    repository_owner = _require(repository_owner, "repository owner", "--repository-owner", "REPOSITORY_OWNER")
    repository_name = _require(repository_name, "repository name", "--repository-name", "REPOSITORY_NAME")
    chat_webhook_url = _require(cli_chat_webhook_url or settings.CHAT_WEBHOOK_URL, "chat webhook URL", "--chat-webhook-url", "CHAT_WEBHOOK_URL")
    store_url = _require(cli_store_url or settings.STORE_URL, "store URL", "--store-url", "STORE_URL")
    store_api_key = _require(cli_store_api_key or settings.STORE_API_KEY, "store API key", "--store-api-key", "STORE_API_KEY")

    tick_interval = _first_set(cli_tick_interval, settings.TICK_INTERVAL, DEFAULT_TICK_INTERVAL)
    if tick_interval <= 0:
        raise InvalidConfigurationElementError("tick interval", "must be a positive number of seconds")

    request_timeout = _first_set(cli_request_timeout, settings.REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT)
    if request_timeout <= 0:
        raise InvalidConfigurationElementError("request timeout", "must be a positive number of seconds")

    page_size = _first_set(cli_page_size, settings.PAGE_SIZE, DEFAULT_PAGE_SIZE)
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidConfigurationElementError("page size", f"must be between 1 and {MAX_PAGE_SIZE}")

    comment_template = _validate_template("comment template", cli_comment_template or settings.COMMENT_TEMPLATE or DEFAULT_COMMENT_TEMPLATE)
    notification_template = _validate_template(
        "notification template", cli_notification_template or settings.NOTIFICATION_TEMPLATE or DEFAULT_NOTIFICATION_TEMPLATE
    )

    config = SyncConfig(
        debug=debug,
        github_api_url=cli_github_api_url or settings.GITHUB_API_URL or DEFAULT_GITHUB_API_URL,
        github_token=github_token,
        repository_owner=repository_owner,
        repository_name=repository_name,
        tick_interval=tick_interval,
        request_timeout=request_timeout,
        page_size=page_size,
        internal_authors=parse_internal_authors(cli_internal_authors or settings.INTERNAL_AUTHORS),
        chat_webhook_url=chat_webhook_url,
        comment_template=comment_template,
        notification_template=notification_template,
        store_url=store_url,
        store_api_key=store_api_key,
        store_table=cli_store_table or settings.STORE_TABLE or DEFAULT_STORE_TABLE,
        bootstrap_watermark=_parse_bootstrap_watermark(cli_bootstrap_watermark or settings.BOOTSTRAP_WATERMARK),
    )
    logger.info(
        "Reconciled synchronization configuration",
        repository=config.repository,
        github_api_url=config.github_api_url,
        tick_interval=config.tick_interval,
        page_size=config.page_size,
        internal_author_count=len(config.internal_authors),
        store_table=config.store_table,
    )
    return config
