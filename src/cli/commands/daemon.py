"""Daemon CLI commands."""

import time

import click
from rich.console import Console

from cli.utils import get_components
from shared_types import SyncType
from sync import build_engine
from sync.scheduler import SyncScheduler

console = Console()

_daemon_scheduler = None


def _scheduler(c: dict) -> SyncScheduler:
    status_path = c["paths"]["rules_db"].parent / "last_run_status.json"
    return SyncScheduler(
        engine_factory=lambda: build_engine(c["config"], c["storage"], sync_type=SyncType.SCHEDULED),
        status_path=status_path,
    )


@click.group()
def daemon():
    """Manage background sync scheduler."""
    pass


@daemon.command("start")
@click.option("--cron", default=None, help="Cron expression (default: sync.schedule from config)")
def daemon_start(cron: str):
    """Start scheduled rule syncing."""
    global _daemon_scheduler
    c = get_components()

    if _daemon_scheduler is not None:
        console.print("[yellow]Daemon already running[/]")
        return

    cron = cron or c["config"]["sync"]["schedule"]
    _daemon_scheduler = _scheduler(c)
    _daemon_scheduler.start(cron_expr=cron)

    console.print(f"[green]Started[/] scheduler with cron: {cron}")
    console.print("Press Ctrl+C to stop")

    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        _daemon_scheduler.stop()
        _daemon_scheduler = None
        console.print("\n[yellow]Stopped[/]")


@daemon.command("run-once")
def daemon_run_once():
    """Run one full sync (for cron/launchd integration)."""
    c = get_components()
    result = _scheduler(c).run_now()
    console.print(
        f"Synced: {result.added} added, {result.updated} updated, {len(result.errors)} errors"
    )
