"""Unit tests for wiring the service components together."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from gitsorted.configuration.models import SyncConfig
from gitsorted.synchronize.driver import build_sync_service, check_store_health, run_single_tick
from gitsorted.synchronize.models import TickOutcome, TickState
from gitsorted.synchronize.results import TickResult
from gitsorted.utils.constants import BOOTSTRAP_WATERMARK, DEFAULT_COMMENT_TEMPLATE, DEFAULT_NOTIFICATION_TEMPLATE


@pytest.fixture
def config() -> SyncConfig:
    """A fully resolved configuration."""
    return SyncConfig(
        debug=False,
        github_api_url="https://api.github.com",
        github_token="ghp_test",
        repository_owner="acme",
        repository_name="widgets",
        tick_interval=15.0,
        request_timeout=5.0,
        page_size=20,
        internal_authors=frozenset({"alice"}),
        chat_webhook_url="https://hooks.slack.com/services/T/B/X",
        comment_template=DEFAULT_COMMENT_TEMPLATE,
        notification_template=DEFAULT_NOTIFICATION_TEMPLATE,
        store_url="https://project.supabase.co/rest/v1",
        store_api_key="store-key",
        store_table="Issues",
        bootstrap_watermark=BOOTSTRAP_WATERMARK,
    )


@pytest.mark.asyncio
async def test_build_sync_service_shares_one_store(config: SyncConfig) -> None:
    """Test that the engine and read paths use the same store and the configured values."""
    service = build_sync_service(config)
    try:
        assert service.engine.store is service.store
        assert service.engine.source is service.source
        assert service.scheduler.engine is service.engine
        assert service.scheduler.interval == 15.0
        assert service.engine.internal_authors == frozenset({"alice"})
        assert service.engine.template_context == {"repository_owner": "acme", "repository_name": "widgets"}
        assert service.source.page_size == 20
        assert service.source.issue_url(3) == "https://github.com/acme/widgets/issues/3"
        assert service.store.table_url == "https://project.supabase.co/rest/v1/Issues"
        assert service.source.client.config.timeout == httpx.Timeout(5.0)
        assert service.notifier._client.timeout == httpx.Timeout(5.0)
        assert service.store._client.timeout == httpx.Timeout(5.0)
    finally:
        await service.close()


@pytest.mark.asyncio
async def test_run_single_tick_closes_clients(config: SyncConfig) -> None:
    """Test that a one-off tick runs through the scheduler and releases its clients."""
    tick = TickResult(TickOutcome.NOTHING_NEW, TickState.DONE)
    with (
        patch("gitsorted.synchronize.engine.SyncEngine.run_tick", new_callable=AsyncMock, return_value=tick),
        patch("gitsorted.synchronize.driver.SyncService.close", new_callable=AsyncMock) as close,
    ):
        result = await run_single_tick(config)
    assert result is tick
    close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_store_health_closes_clients_on_failure(config: SyncConfig) -> None:
    """Test that the health check releases its clients even when the store is down."""
    with (
        patch("gitsorted.persistence.postgrest.PostgrestIssueStore.ping", new_callable=AsyncMock, side_effect=RuntimeError("down")),
        patch("gitsorted.synchronize.driver.SyncService.close", new_callable=AsyncMock) as close,
    ):
        with pytest.raises(RuntimeError):
            await check_store_health(config)
    close.assert_awaited_once()
