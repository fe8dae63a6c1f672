"""Shared SQLite helpers: WAL mode, busy timeout, foreign keys."""

import sqlite3
from pathlib import Path

# Sync workers write from several threads at once; wait for the lock instead of failing.
BUSY_TIMEOUT_SECONDS = 30.0


def wal_connect(db_path: str | Path, row_factory: bool = False) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode and FK enforcement.

    Args:
        db_path: Path to database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
    """
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT_SECONDS)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
