"""Rule inspection CLI commands."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from cli.utils import get_components
from rules import Environment, check_compatibility, parse_rule_document

console = Console()


@click.group()
def rules():
    """Inspect synced rules."""
    pass


@rules.command("list")
@click.option("-c", "--category", help="Filter by category slug")
@click.option("-n", "--limit", default=50, help="Max rules to show")
def rules_list(category: str, limit: int):
    """List stored rules."""
    c = get_components()
    storage = c["storage"]

    category_id = None
    if category:
        found = storage.get_category_by_slug(category.lower())
        if not found:
            console.print(f"[red]Unknown category:[/] {escape(category)}")
            return
        category_id = found.id

    items = storage.list_rules(category_id=category_id, limit=limit)
    if not items:
        console.print("[yellow]No rules found.[/]")
        return

    categories = {cat.id: cat.slug for cat in storage.list_categories()}

    table = Table(show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Title")
    table.add_column("Version", style="dim")

    for rule in items:
        table.add_row(
            escape(rule.id),
            escape(categories.get(rule.category_id, "?")),
            escape(rule.title[:50]),
            escape(rule.version),
        )

    console.print(table)


@rules.command("show")
@click.argument("rule_id")
def rules_show(rule_id: str):
    """Show one rule with its metadata."""
    c = get_components()
    rule = c["storage"].get_rule(rule_id)
    if not rule:
        console.print(f"[red]Not found:[/] {escape(rule_id)}")
        sys.exit(1)

    console.print(f"\n[cyan bold]{escape(rule.title)}[/]")
    updated = (rule.last_updated or "?")[:10]
    console.print(f"[dim]{escape(rule.path)} | v{escape(rule.version)} | updated {updated}[/]")
    if rule.description:
        console.print(escape(rule.description))
    if rule.tags:
        console.print(f"[dim]Tags: {escape(', '.join(rule.tags))}[/]")
    if rule.globs:
        console.print(f"[dim]Globs: {escape(', '.join(rule.globs))}[/]")
    if rule.compatibility and not rule.compatibility.is_empty():
        for dimension, values in rule.compatibility.to_dict().items():
            if values:
                console.print(f"[dim]{dimension}: {escape(', '.join(values))}[/]")

    versions = c["storage"].get_rule_versions(rule.id)
    console.print(f"[dim]History: {len(versions)} versions[/]")
    console.print()
    console.print(Markdown(rule.content))


@rules.command("check")
@click.argument("rule_id")
@click.option("--ide", help="Target IDE, e.g. cursor")
@click.option("--assistant", help="Target AI assistant, e.g. claude")
@click.option("--framework", "frameworks", multiple=True, help="Framework in use (repeatable)")
@click.option("--mcp", "mcp_servers", multiple=True, help="MCP server in use (repeatable)")
def rules_check(rule_id: str, ide: str, assistant: str, frameworks: tuple, mcp_servers: tuple):
    """Check whether a rule fits a target environment."""
    c = get_components()
    rule = c["storage"].get_rule(rule_id)
    if not rule:
        console.print(f"[red]Not found:[/] {escape(rule_id)}")
        sys.exit(1)

    result = check_compatibility(
        rule,
        Environment(
            ide=ide,
            ai_assistant=assistant,
            frameworks=list(frameworks),
            mcp_servers=list(mcp_servers),
        ),
    )

    if result.compatible:
        console.print(f"[green]✓[/] {escape(rule.title)} is compatible")
        return

    console.print(f"[red]✗[/] {escape(rule.title)} is not compatible")
    for reason in result.reasons:
        console.print(f"  {escape(reason)}")
    sys.exit(1)


@rules.command("validate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def rules_validate(file: Path):
    """Parse a local rule document and report problems."""
    doc, diagnostics = parse_rule_document(file.read_text(encoding="utf-8"), file.as_posix())

    console.print(f"[cyan bold]{escape(doc.title)}[/] [dim]v{escape(doc.version)}[/]")
    if doc.tags:
        console.print(f"[dim]Tags: {escape(', '.join(doc.tags))}[/]")
    if not doc.compatibility.is_empty():
        for dimension, values in doc.compatibility.to_dict().items():
            if values:
                console.print(f"[dim]{dimension}: {escape(', '.join(values))}[/]")

    if not diagnostics:
        console.print("[green]Valid[/]")
        return

    for problem in diagnostics:
        console.print(f"  [yellow]![/] {escape(problem)}")
    sys.exit(1)
