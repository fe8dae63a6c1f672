"""Sync CLI commands."""

import asyncio
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.utils import get_components
from sync import SourceError, build_engine, run_sync, sync_stats

console = Console()


@click.command()
@click.option("-c", "--category", help="Only sync one category slug")
@click.option(
    "--local",
    "local_dir",
    type=click.Path(exists=True, file_okay=False),
    help="Sync from a local checkout instead of GitHub",
)
@click.option("--concurrency", type=click.IntRange(1, 50), help="Max documents in flight")
def sync(category: str, local_dir: str, concurrency: int):
    """Sync rule documents into the rule store."""
    c = get_components()
    engine = build_engine(c["config"], c["storage"], local_dir=local_dir, concurrency=concurrency)

    with console.status(f"Syncing from {engine.source.source_name}..."):
        result = run_sync(engine, category=category)

    table = Table(show_header=True)
    table.add_column("Added", justify="right", style="green")
    table.add_column("Updated", justify="right", style="cyan")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Duration", justify="right")
    table.add_row(
        str(result.added),
        str(result.updated),
        str(len(result.errors)),
        f"{result.duration_ms} ms",
    )
    console.print(table)

    for error in result.errors[:20]:
        console.print(f"  [red]✗[/] {escape(error)}")
    if len(result.errors) > 20:
        console.print(f"  [dim]... and {len(result.errors) - 20} more[/]")


@click.command()
@click.option("-n", "--limit", default=10, help="Max log records to show")
def logs(limit: int):
    """Show recent sync runs."""
    c = get_components()
    records = c["storage"].get_sync_logs(limit=limit)

    if not records:
        console.print("[yellow]No sync runs recorded. Run 'rulesync sync' first.[/]")
        return

    table = Table(show_header=True)
    table.add_column("When", style="cyan")
    table.add_column("Type")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Updated", justify="right")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Duration", justify="right", style="dim")

    for log in records:
        table.add_row(
            (log.created_at or "?")[:19],
            log.sync_type,
            str(log.added_count),
            str(log.updated_count),
            str(log.error_count),
            f"{log.duration_ms} ms",
        )

    console.print(table)


@click.command()
def stats():
    """Show rule and category counts and the last sync."""
    c = get_components()
    data = sync_stats(c["storage"])

    console.print(f"[bold]Rules:[/] {data['rule_count']}")
    console.print(f"[bold]Categories:[/] {data['category_count']}")
    last = data["last_sync"]
    if last:
        console.print(
            f"[bold]Last sync:[/] {last['created_at']} ({last['sync_type']}) "
            f"+{last['added_count']} ~{last['updated_count']} "
            f"[red]{last['error_count']} errors[/]"
        )
    else:
        console.print("[bold]Last sync:[/] [dim]never[/]")


@click.command()
@click.option(
    "--local",
    "local_dir",
    type=click.Path(exists=True, file_okay=False),
    help="Compare against a local checkout instead of GitHub",
)
def orphans(local_dir: str):
    """List stored rules whose documents no longer exist in the source."""
    c = get_components()
    engine = build_engine(c["config"], c["storage"], local_dir=local_dir)

    async def _find():
        async with engine.source:
            return await engine.find_orphans()

    try:
        with console.status("Listing source documents..."):
            found = asyncio.run(_find())
    except SourceError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    if not found:
        console.print("[green]No orphaned rules.[/]")
        return

    for path, rule_id in found:
        console.print(f"  [yellow]{escape(rule_id)}[/] {escape(path)}")
    console.print(f"\n{len(found)} orphaned rules (not deleted)")
