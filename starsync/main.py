"""
starsync — CLI Entry Point

Usage:
    python -m starsync.main sync [--dry-run] [--audit-file PATH]
    python -m starsync.main plan [--json]
    python -m starsync.main check-config [--json]
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path.cwd() / ".env")

import json
import logging
from contextlib import ExitStack
from typing import Optional

import click

from .cli.config import check_config
from .clients.github import GitHubClient
from .clients.notion import NotionClient
from .config.settings import SyncSettings
from .engine.run import fetch_plan, run_sync
from .errors import ConfigurationError, FetchError
from .logging_config import setup_logging
from .persistence.audit import AuditWriter

logger = logging.getLogger(__name__)


def _load_settings() -> SyncSettings:
    """Load and validate settings, exiting with status 1 if incomplete."""
    try:
        return SyncSettings.from_env().validate()
    except ConfigurationError as e:
        click.secho(f"❌ {e.message}", fg="red", err=True)
        click.echo("   Run `starsync check-config` for setup guidance.", err=True)
        raise SystemExit(1)


@click.group()
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR (default: $LOG_LEVEL or INFO)")
@click.option("--log-format", type=click.Choice(["text", "json"]), default=None, help="Log output format")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """starsync — Mirror your GitHub stars into a Notion database."""
    ctx.ensure_object(dict)
    setup_logging(level=log_level, format_type=log_format)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Compute every change but write nothing")
@click.option("--audit-file", type=click.Path(path_type=Path), default=None,
              help="Append an NDJSON audit trail to this file")
@click.pass_context
def sync(ctx: click.Context, dry_run: bool, audit_file: Optional[Path]) -> None:
    """Run one reconciliation pass between stars and the database."""
    settings = _load_settings()

    audit_writer: Optional[AuditWriter] = None
    if audit_file is not None and not dry_run:
        audit_writer = AuditWriter(audit_file)

    with ExitStack() as stack:
        source = stack.enter_context(GitHubClient.from_settings(settings))
        mirror = stack.enter_context(NotionClient.from_settings(settings))
        try:
            result = run_sync(source, mirror, audit_writer=audit_writer, dry_run=dry_run)
        except FetchError as e:
            logger.error(f"Sync aborted: {e.message}")
            click.secho(f"❌ Sync aborted: {e.message}", fg="red", err=True)
            raise SystemExit(1)

    click.echo("")
    click.echo(f"  Run ID:    {result.run_id}")
    click.echo(f"  Stars:     {result.stars_fetched}")
    click.echo(f"  Records:   {result.records_fetched}")
    click.echo(f"  Created:   {len(result.created)} {result.created or ''}")
    click.echo(f"  Archived:  {len(result.archived)} {result.archived or ''}")
    click.echo(f"  Patched:   {len(result.patched)} of {result.checked} checked")

    if result.errors:
        click.secho(f"\n⚠️  {len(result.errors)} record(s) failed:", fg="yellow")
        for error in result.errors:
            click.echo(f"    ✗ {error}")
    if dry_run:
        click.secho(
            f"\n(Dry run — would create {len(result.planned_create)}, "
            f"archive {len(result.planned_archive)})",
            fg="cyan",
        )
    elif result.success:
        click.secho("\n✓ Sync complete", fg="green")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """Show what a sync would create, archive and re-check."""
    settings = _load_settings()

    with ExitStack() as stack:
        source = stack.enter_context(GitHubClient.from_settings(settings))
        mirror = stack.enter_context(NotionClient.from_settings(settings))
        try:
            stars, records, work = fetch_plan(source, mirror)
        except FetchError as e:
            click.secho(f"❌ {e.message}", fg="red", err=True)
            raise SystemExit(1)

    summary = work.summary()
    if as_json:
        click.echo(json.dumps(summary, indent=2, ensure_ascii=False))
        return

    click.echo(f"\n  Stars: {len(stars)}    Records: {len(records)}\n")
    for label, key in (("Create", "create"), ("Archive", "archive")):
        names = summary[key]
        click.echo(f"  {label} ({len(names)}):")
        for name in names:
            click.echo(f"    • {name}")
    click.echo(f"  Check:  {len(summary['check'])} record(s)")


cli.add_command(check_config)


if __name__ == "__main__":
    cli()
