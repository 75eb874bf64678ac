"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import json

import typer
from dotenv import load_dotenv
from typer import Option
from typing_extensions import Annotated

from gitsorted.configuration.exceptions import InvalidConfigurationElementError, RequiredConfigurationElementError
from gitsorted.configuration.models import SyncConfig
from gitsorted.configuration.reconcile import reconcile_sync_configuration
from gitsorted.exceptions import GitSortedError
from gitsorted.synchronize.driver import check_store_health, list_stored_issues, run_single_tick, run_sync_service
from gitsorted.utils.logging_config import configure_logging

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Watch a GitHub repository for new issues and acknowledge them.")


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Annotated[bool, Option(help="Enable debug logging.")] = False,
    github_api_url: Annotated[str | None, Option(help="GitHub API URL.")] = None,
    github_token: Annotated[str | None, Option(help="GitHub token used to read issues and post comments.")] = None,
    repo: Annotated[str | None, Option(help="Repository (owner/repo); overrides owner and name.")] = None,
    repository_owner: Annotated[str | None, Option(help="Repository owner.")] = None,
    repository_name: Annotated[str | None, Option(help="Repository name.")] = None,
    tick_interval: Annotated[float | None, Option(help="Seconds between synchronization ticks.")] = None,
    request_timeout: Annotated[float | None, Option(help="Seconds any single outbound call may take.")] = None,
    page_size: Annotated[int | None, Option(help="Issues requested per page.")] = None,
    internal_authors: Annotated[str | None, Option(help="Comma separated handles whose issues are stored without notification.")] = None,
    chat_webhook_url: Annotated[str | None, Option(help="Chat incoming webhook URL.")] = None,
    comment_template: Annotated[str | None, Option(help="Jinja2 template of the acknowledgment comment.")] = None,
    notification_template: Annotated[str | None, Option(help="Jinja2 template of the chat notification.")] = None,
    store_url: Annotated[str | None, Option(help="PostgREST base URL of the issue store.")] = None,
    store_api_key: Annotated[str | None, Option(help="API key of the issue store.")] = None,
    store_table: Annotated[str | None, Option(help="Table holding issue records.")] = None,
    bootstrap_watermark: Annotated[str | None, Option(help="ISO-8601 watermark used while the store is empty.")] = None,
) -> None:
    """Resolve the configuration shared by every command."""
    configure_logging(debug)
    try:
        config = asyncio.run(
            reconcile_sync_configuration(
                cli_debug=debug,
                cli_github_api_url=github_api_url,
                cli_github_token=github_token,
                cli_repo=repo,
                cli_repository_owner=repository_owner,
                cli_repository_name=repository_name,
                cli_tick_interval=tick_interval,
                cli_request_timeout=request_timeout,
                cli_page_size=page_size,
                cli_internal_authors=internal_authors,
                cli_chat_webhook_url=chat_webhook_url,
                cli_comment_template=comment_template,
                cli_notification_template=notification_template,
                cli_store_url=store_url,
                cli_store_api_key=store_api_key,
                cli_store_table=store_table,
                cli_bootstrap_watermark=bootstrap_watermark,
            )
        )
    except (RequiredConfigurationElementError, InvalidConfigurationElementError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2) from exc
    if config.debug and not debug:
        configure_logging(True)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@typer_app.command(name="run")
def run_cli(ctx: typer.Context) -> None:
    """Synchronize new issues on a fixed period until interrupted."""
    config: SyncConfig = ctx.obj["config"]
    typer.echo(f"Watching {config.repository} every {config.tick_interval} seconds")
    asyncio.run(run_sync_service(config))


@typer_app.command(name="sync-once")
def sync_once_cli(ctx: typer.Context) -> None:
    """Run a single synchronization tick and exit."""
    config: SyncConfig = ctx.obj["config"]
    result = asyncio.run(run_single_tick(config))
    typer.echo(f"Tick outcome: {result.outcome.value} ({len(result.candidates)} issue(s), {result.duration}s)")
    if not result.ok:
        if result.error is not None:
            typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(1)


@typer_app.command(name="list-issues")
def list_issues_cli(ctx: typer.Context) -> None:
    """Print every stored issue record as JSON."""
    config: SyncConfig = ctx.obj["config"]
    try:
        records = asyncio.run(list_stored_issues(config))
    except GitSortedError as exc:
        typer.echo(f"Failed to read issues from store: {exc}", err=True)
        raise typer.Exit(1) from exc
    typer.echo(json.dumps([record.model_dump(mode="json") for record in records], indent=2))


@typer_app.command(name="healthz")
def healthz_cli(ctx: typer.Context) -> None:
    """Check that the configuration resolves and the store is reachable."""
    config: SyncConfig = ctx.obj["config"]
    try:
        asyncio.run(check_store_health(config))
    except GitSortedError as exc:
        typer.echo(f"Store unreachable: {exc}", err=True)
        raise typer.Exit(1) from exc
    typer.echo("OK")


if __name__ == "__main__":
    typer_app()
