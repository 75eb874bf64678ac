"""Wires the synchronization components together and runs them."""

import asyncio
import signal
from dataclasses import dataclass

import structlog

from gitsorted.configuration.models import SyncConfig
from gitsorted.github.adapter import GitHubKitAdapter
from gitsorted.notify.slack import SlackNotifier
from gitsorted.persistence.postgrest import PostgrestIssueStore
from gitsorted.schemas.issue import IssueRecord
from gitsorted.synchronize.engine import SyncEngine
from gitsorted.synchronize.results import TickResult
from gitsorted.synchronize.scheduler import SyncScheduler

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SyncService:
    """All long-lived components of the service.

    The store instance is shared by the engine and by every read path.
    """

    config: SyncConfig
    source: GitHubKitAdapter
    notifier: SlackNotifier
    store: PostgrestIssueStore
    engine: SyncEngine
    scheduler: SyncScheduler

    async def close(self) -> None:
        """Release the HTTP clients held by the components."""
        await self.notifier.close()
        await self.store.close()
        await self.source.close()


def build_sync_service(config: SyncConfig) -> SyncService:
    """Construct every component from a resolved configuration."""
    source = GitHubKitAdapter.create(
        github_token=config.github_token,
        owner=config.repository_owner,
        repo_name=config.repository_name,
        github_api_url=config.github_api_url,
        page_size=config.page_size,
        request_timeout=config.request_timeout,
    )
    notifier = SlackNotifier(config.chat_webhook_url, request_timeout=config.request_timeout)
    store = PostgrestIssueStore(
        config.store_url,
        config.store_api_key,
        table=config.store_table,
        request_timeout=config.request_timeout,
    )
    engine = SyncEngine(
        source=source,
        notifier=notifier,
        store=store,
        internal_authors=config.internal_authors,
        comment_template=config.comment_template,
        notification_template=config.notification_template,
        template_context={
            "repository_owner": config.repository_owner,
            "repository_name": config.repository_name,
        },
        bootstrap_watermark=config.bootstrap_watermark,
    )
    scheduler = SyncScheduler(engine, interval=config.tick_interval)
    return SyncService(config=config, source=source, notifier=notifier, store=store, engine=engine, scheduler=scheduler)


async def run_sync_service(config: SyncConfig) -> None:
    """Run the scheduler until SIGINT or SIGTERM, letting the in-flight tick finish."""
    service = build_sync_service(config)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)
    logger.info(
        "Starting issue synchronization service",
        repository=config.repository,
        tick_interval=config.tick_interval,
    )
    try:
        await service.scheduler.run_forever(stop_event)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await service.close()
    logger.info("Stopped issue synchronization service")


async def run_single_tick(config: SyncConfig) -> TickResult:
    """Run exactly one synchronization tick."""
    service = build_sync_service(config)
    try:
        return await service.scheduler.run_tick()
    finally:
        await service.close()


async def list_stored_issues(config: SyncConfig) -> list[IssueRecord]:
    """Return every record in the store."""
    service = build_sync_service(config)
    try:
        return await service.store.list_issues()
    finally:
        await service.close()


async def check_store_health(config: SyncConfig) -> None:
    """Raise if the store cannot be reached with the configured key."""
    service = build_sync_service(config)
    try:
        await service.store.ping()
    finally:
        await service.close()
