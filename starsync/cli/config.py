"""
CLI config commands — credential and database configuration checking.

Usage:
    python -m starsync.main check-config [--json]
"""

from __future__ import annotations

import click


@click.command("check-config")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check_config(ctx: click.Context, as_json: bool) -> None:
    """Check that GitHub and Notion are configured."""
    import json as json_lib

    from ..config.validator import check_settings

    results = check_settings()
    incomplete = [name for name, status in results.items() if not status.configured]

    if as_json:
        click.echo(json_lib.dumps(
            {name: status.to_dict() for name, status in results.items()},
            indent=2,
        ))
        if incomplete:
            raise SystemExit(1)
        return

    click.echo("\n📋 Configuration Status\n")

    for name, status in sorted(results.items()):
        if status.configured:
            click.secho(f"  ✓ {name}", fg="green")
        else:
            click.secho(f"  ✗ {name}", fg="red", nl=False)
            click.echo(f" — missing: {', '.join(status.missing)}")

    click.echo()
    if not incomplete:
        click.secho("Ready to sync.", bold=True)
        return

    click.echo("📖 Setup Guide:\n")
    for name in incomplete:
        click.echo(f"  {name}:")
        click.echo(f"    → {results[name].guidance}")
    raise SystemExit(1)
