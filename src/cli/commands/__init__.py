"""CLI command modules."""

from .daemon import daemon
from .rules import rules
from .sync import logs, orphans, stats, sync

__all__ = [
    "sync",
    "logs",
    "stats",
    "orphans",
    "rules",
    "daemon",
]
