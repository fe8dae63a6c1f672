"""CLI entry point for rulesync."""

import sys
from pathlib import Path

import click

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands import daemon, logs, orphans, rules, stats, sync
from cli.config import load_config
from cli.logging_config import setup_logging_from_config


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """rulesync - Sync AI coding rules from a GitHub repository."""
    try:
        config = load_config()
    except ValueError:
        # Commands report config errors themselves
        config = {}
    setup_logging_from_config(config, verbose=verbose)


cli.add_command(sync)
cli.add_command(logs)
cli.add_command(stats)
cli.add_command(orphans)
cli.add_command(rules)
cli.add_command(daemon)


if __name__ == "__main__":
    cli()
