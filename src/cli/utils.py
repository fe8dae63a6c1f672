"""Shared CLI utilities."""

import sys

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components():
    """Initialize config and rule storage.

    Exits with an error message when the config file is invalid.
    """
    from cli.config import get_paths, load_config_model
    from rules.storage import RuleStorage

    try:
        config_model = load_config_model()
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)

    config = config_model.to_dict()
    paths = get_paths(config)

    return {
        "config": config,
        "config_model": config_model,
        "paths": paths,
        "storage": RuleStorage(paths["rules_db"]),
    }
