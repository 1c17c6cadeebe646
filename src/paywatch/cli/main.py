#!/usr/bin/env python3
"""
Main CLI Entry Point for paywatch

Watches the Rakuten Pay notification inbox and exports new transactions to
Money Forward ME.
"""

import asyncio
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import click

from ..core.config import Config, get_config
from ..core.json_utils import format_json
from ..core.models import PaymentDefaults, is_consistent_record, validate_record
from ..export import ExportRetryWrapper, ExportSubscriber, MoneyForwardExporter, log_batch
from ..mail import RakutenPayParser, TestmailClient
from ..watcher import Dispatcher, Poller, Scheduler, SourceCursor


def build_poller(config: Config, dry_run: bool = False, headless: bool | None = None) -> Poller:
    """Wire mail source, dispatcher, subscribers and poller from configuration."""
    source = TestmailClient(config.mail)
    dispatcher = Dispatcher()
    dispatcher.subscribe(log_batch)

    if not dry_run:
        exporter_config = config.exporter
        if headless is not None:
            exporter_config = replace(exporter_config, headless=headless)

        exporter = MoneyForwardExporter(exporter_config, mail_source=source)
        wrapper = ExportRetryWrapper(exporter, retry_delay=config.watcher.retry_delay)
        defaults = PaymentDefaults(
            large_category=config.exporter.large_category,
            middle_category=config.exporter.middle_category,
            source=config.exporter.source,
        )
        dispatcher.subscribe(ExportSubscriber(wrapper, defaults))

    return Poller(source, dispatcher)


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    paywatch - Rakuten Pay to Money Forward ME bridge

    Polls the notification inbox, extracts transactions from both email
    templates and registers point and cash usage as manual entries.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["PAYWATCH_ENV"] = config_env

    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("paywatch").setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug


def _load_config() -> Config:
    try:
        return get_config()
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


@main.command()
@click.option("--interval", type=float, help="Override poll interval in seconds")
@click.option("--dry-run", is_flag=True, help="Log new transactions without exporting")
@click.option("--headful", is_flag=True, help="Show the browser while exporting")
@click.pass_context
def watch(ctx: click.Context, interval: float | None, dry_run: bool, headful: bool) -> None:
    """
    Watch the inbox and export new transactions until interrupted.

    Examples:
      paywatch watch
      paywatch watch --dry-run --interval 60
    """
    config = _load_config()
    poller = build_poller(config, dry_run=dry_run, headless=False if headful else None)
    scheduler = Scheduler(poller, interval=interval or config.watcher.poll_interval)

    if ctx.obj.get("verbose"):
        click.echo(f"Environment: {config.environment.value}")
        click.echo(f"Poll interval: {scheduler.interval:g}s, retry delay: {config.watcher.retry_delay:g}s")
        click.echo(f"Export: {'disabled (dry run)' if dry_run else 'Money Forward ME'}")

    try:
        asyncio.run(scheduler.run())
    except KeyboardInterrupt:
        click.echo("Stopped")


@main.command()
@click.option("--since", help="Only fetch emails received after this ISO timestamp")
@click.option("--export", "do_export", is_flag=True, help="Also export the batch to Money Forward ME")
def poll(since: str | None, do_export: bool) -> None:
    """Run a single poll cycle and print the valid batch as JSON."""
    config = _load_config()

    try:
        cursor_value = datetime.fromisoformat(since).astimezone() if since else None
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--since") from e

    poller = build_poller(config, dry_run=not do_export)
    poller.cursor = SourceCursor(cursor_value)

    result = asyncio.run(poller.poll_once())
    if result is None:
        click.echo("❌ Mail fetch failed, see log for details", err=True)
        sys.exit(1)

    click.echo(format_json([record.to_dict() for record in result.batch]))
    click.echo(
        f"Fetched {result.fetched}, valid {len(result.batch)}, invalid {result.invalid}, "
        f"without body {result.skipped}, deferred {result.deferred}",
        err=True,
    )


@main.command()
@click.argument("html_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def parse(html_file: Path) -> None:
    """Extract a transaction from a saved email HTML file."""
    html_content = html_file.read_text(encoding="utf-8")
    record = RakutenPayParser().parse_html_content(html_content, message_id=html_file.name)
    errors = validate_record(record)

    click.echo(format_json(record.to_dict()))
    click.echo(f"Consistent: {is_consistent_record(record)}")
    if errors:
        click.echo(f"Valid: False ({'; '.join(errors)})")
    else:
        click.echo("Valid: True")


@main.command()
def config() -> None:
    """Show current configuration."""
    config_obj = _load_config()
    click.echo("Current Configuration:")
    click.echo(format_json(config_obj.to_dict()))


@main.command()
def version() -> None:
    """Show version information."""
    from paywatch import __version__

    click.echo(f"paywatch v{__version__}")


if __name__ == "__main__":
    main()
