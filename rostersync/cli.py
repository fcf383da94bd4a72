"""rostersync CLI: manual and periodic roster-to-role sync."""

from __future__ import annotations

import asyncio
import sys

import click
from rich.console import Console
from rich.table import Table

from rostersync import __version__
from rostersync.config import SyncConfig, load_config
from rostersync.errors import RosterSyncError
from rostersync.logging import configure_logging, get_logger

console = Console()
logger = get_logger(__name__)


def _load(ctx: click.Context, require_token: bool = True) -> SyncConfig:
    config: SyncConfig = ctx.obj["config"]
    try:
        config.validate(require_token=require_token)
    except RosterSyncError as e:
        console.print(f"[red]Configuration error:[/] {e}")
        sys.exit(2)
    return config


def _reconciler(config: SyncConfig):
    from rostersync.directory.discord import DiscordClient
    from rostersync.roster.source import HttpRosterSource
    from rostersync.sync.engine import Reconciler

    client = DiscordClient(config.token)
    return Reconciler(client, HttpRosterSource(config.sheet_csv_url), config)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=None, help="YAML config file")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, json_logs: bool):
    """rostersync: keep a Discord role in sync with a signed/not-signed roster.

    Settings come from the optional YAML file, overridden by environment
    variables (TOKEN, SHEET_CSV_URL, MEMBER_ROLE_ID, ...).
    """
    try:
        config = load_config(config_path)
    except RosterSyncError as e:
        console.print(f"[red]Configuration error:[/] {e}")
        sys.exit(2)
    configure_logging(level="DEBUG" if config.verbose else "INFO", json_format=json_logs)
    ctx.obj = {"config": config}


# ── Sync ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--guild", "-g", "guild_id", default=None, help="Guild to sync (default: all)")
@click.option("--dry-run", is_flag=True, help="Only show changes, do not modify roles")
@click.pass_context
def sync(ctx: click.Context, guild_id: str | None, dry_run: bool):
    """Run one reconciliation pass and print what changed."""
    from rostersync.sync.engine import format_summary

    config = _load(ctx)
    reconciler = _reconciler(config)
    failed: list[str] = []

    async def _run():
        results = []
        try:
            target = guild_id or config.guild_id
            if target:
                ids = [target]
            else:
                try:
                    ids = await reconciler.client.list_guild_ids()
                except RosterSyncError as e:
                    logger.error("cli.guild_list_failed", error=str(e))
                    failed.append("could not list guilds")
                    return results
            for gid in ids:
                try:
                    results.append(await reconciler.reconcile(gid, dry_run=dry_run))
                except RosterSyncError as e:
                    logger.error("cli.sync_failed", guild_id=gid, error=str(e))
                    failed.append(f"guild {gid}")
            return results
        finally:
            await reconciler.client.aclose()

    results = asyncio.run(_run())
    for label in failed:
        console.print(f"[red]Sync failed:[/] {label}")

    for result in results:
        console.print(f"\n[bold blue]Guild {result.guild_id}[/]")
        console.print(format_summary(result, show_bans=config.ban_non_signed))
        for warning in result.warnings:
            console.print(f"  [yellow]![/] {warning}")
        if result.to_add or result.to_remove or result.to_ban:
            table = Table(title="Candidates")
            table.add_column("Action", style="cyan")
            table.add_column("User IDs")
            table.add_row("add", ", ".join(result.to_add) or "-")
            table.add_row("remove", ", ".join(result.to_remove) or "-")
            if config.ban_non_signed:
                table.add_row("ban", ", ".join(result.to_ban) or "-")
            console.print(table)
        for user_id, error in result.failures.items():
            console.print(f"  [red]x[/] {user_id}: {error}")

    if failed or any(r.had_errors for r in results):
        sys.exit(1)


# ── Run ──────────────────────────────────────────────────────────────


@main.command()
@click.option("--cycles", type=int, default=None, help="Stop after N cycles")
@click.pass_context
def run(ctx: click.Context, cycles: int | None):
    """Sync periodically until interrupted."""
    from rostersync.sync.scheduler import SyncScheduler

    config = _load(ctx)
    if not config.enable_periodic:
        console.print("[yellow]Periodic sync is disabled (set ENABLE_NDA_SYNC=true).[/]")
        return

    reconciler = _reconciler(config)
    scheduler = SyncScheduler(reconciler, config.interval_seconds, config.guild_id)

    async def _run():
        try:
            await scheduler.run_forever(max_cycles=cycles)
        finally:
            await reconciler.client.aclose()

    console.print(
        f"[bold blue]rostersync[/]: periodic sync every {config.interval_seconds:g}s"
    )
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\nStopped.")


# ── Roster ───────────────────────────────────────────────────────────


@main.command()
@click.option("--guild", "-g", "guild_id", default="", help="Guild id for scope filtering")
@click.option("--file", "-f", "csv_file", default=None, type=click.Path(exists=True),
              help="Read the roster from a local CSV instead of SHEET_CSV_URL")
@click.pass_context
def roster(ctx: click.Context, guild_id: str, csv_file: str | None):
    """Fetch and classify the roster without touching Discord."""
    from rostersync.roster.classifier import classify_roster
    from rostersync.roster.parser import parse_table
    from rostersync.roster.source import HttpRosterSource, StaticRosterSource

    config: SyncConfig = ctx.obj["config"]
    try:
        if csv_file:
            with open(csv_file, encoding="utf-8") as f:
                source = StaticRosterSource(f.read())
        else:
            source = HttpRosterSource(config.sheet_csv_url)
        text = asyncio.run(source.fetch())
    except RosterSyncError as e:
        logger.error("cli.roster_fetch_failed", error=str(e))
        console.print("[red]Roster fetch failed.[/]")
        sys.exit(1)

    table = parse_table(text)
    result = classify_roster(table, config.columns, guild_id or config.guild_id or "")

    console.print(f"Header: {', '.join(table.header) or '(empty)'}")
    console.print(f"Rows: {len(table.rows)}")
    console.print(f"[green]Allowed ({len(result.allowed)}):[/] {', '.join(sorted(result.allowed))}")
    console.print(f"[red]Denied ({len(result.denied)}):[/] {', '.join(sorted(result.denied))}")
    if result.rejected_identities:
        console.print(f"[yellow]Rejected non-numeric ids:[/] {result.rejected_identities}")
    if result.out_of_scope:
        console.print(f"Rows for other guilds: {result.out_of_scope}")


if __name__ == "__main__":
    main()
