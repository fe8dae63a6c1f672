"""SQLite storage for rules, categories, rule versions, and sync logs."""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from db import wal_connect

from .models import Category, Compatibility, Rule, RuleVersion, SyncLog

logger = structlog.get_logger().bind(source="rule_storage")


class StorageError(Exception):
    """Store read/write failure."""


class DuplicateKeyError(StorageError):
    """Insert hit a uniqueness constraint (category slug, rule path, rule id)."""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dumps(value) -> Optional[str]:
    return json.dumps(value) if value is not None else None


def _loads(value: Optional[str]):
    return json.loads(value) if value else None


class RuleStorage:
    """Row-oriented CRUD over the rule store.

    Each call opens its own connection, so one instance is safe to share
    between sync worker threads. Uniqueness on ``categories.slug`` and
    ``rules.path`` is enforced by the schema.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with wal_connect(self.db_path) as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS categories (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL UNIQUE,
                    description TEXT NOT NULL DEFAULT '',
                    icon TEXT,
                    order_index INTEGER,
                    parent_id TEXT REFERENCES categories(id),
                    created_at TIMESTAMP,
                    updated_at TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS rules (
                    id TEXT PRIMARY KEY,
                    slug TEXT NOT NULL,
                    path TEXT NOT NULL UNIQUE,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    content TEXT NOT NULL DEFAULT '',
                    version TEXT NOT NULL,
                    category_id TEXT NOT NULL REFERENCES categories(id),
                    tags TEXT,
                    globs TEXT,
                    compatibility TEXT,
                    examples TEXT,
                    always_apply INTEGER,
                    last_updated TIMESTAMP,
                    created_at TIMESTAMP,
                    updated_at TIMESTAMP
                );
                CREATE INDEX IF NOT EXISTS idx_rules_category ON rules(category_id);

                CREATE TABLE IF NOT EXISTS rule_versions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    rule_id TEXT NOT NULL REFERENCES rules(id),
                    version TEXT NOT NULL,
                    content TEXT NOT NULL DEFAULT '',
                    changes TEXT,
                    created_at TIMESTAMP
                );
                CREATE INDEX IF NOT EXISTS idx_rule_versions_rule ON rule_versions(rule_id);

                CREATE TABLE IF NOT EXISTS sync_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sync_type TEXT NOT NULL,
                    added_count INTEGER NOT NULL DEFAULT 0,
                    updated_count INTEGER NOT NULL DEFAULT 0,
                    error_count INTEGER NOT NULL DEFAULT 0,
                    errors TEXT,
                    duration_ms INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP
                );
                CREATE INDEX IF NOT EXISTS idx_sync_logs_created ON sync_logs(created_at);
            """)

    # --- Rules ---

    @staticmethod
    def _row_to_rule(row: sqlite3.Row) -> Rule:
        compat = _loads(row["compatibility"])
        always_apply = row["always_apply"]
        return Rule(
            id=row["id"],
            slug=row["slug"],
            path=row["path"],
            title=row["title"],
            description=row["description"],
            content=row["content"],
            version=row["version"],
            category_id=row["category_id"],
            tags=_loads(row["tags"]),
            globs=_loads(row["globs"]),
            compatibility=Compatibility.from_dict(compat) if compat is not None else None,
            examples=_loads(row["examples"]),
            always_apply=bool(always_apply) if always_apply is not None else None,
            last_updated=row["last_updated"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _rule_values(rule: Rule) -> dict:
        return {
            "slug": rule.slug,
            "path": rule.path,
            "title": rule.title,
            "description": rule.description,
            "content": rule.content,
            "version": rule.version,
            "category_id": rule.category_id,
            "tags": _dumps(rule.tags),
            "globs": _dumps(rule.globs),
            "compatibility": _dumps(rule.compatibility.to_dict()) if rule.compatibility else None,
            "examples": _dumps(rule.examples),
            "always_apply": int(rule.always_apply) if rule.always_apply is not None else None,
            "last_updated": rule.last_updated,
        }

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM rules WHERE id = ?", (rule_id,)).fetchone()
        return self._row_to_rule(row) if row else None

    def get_rule_by_path(self, path: str) -> Optional[Rule]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM rules WHERE path = ?", (path,)).fetchone()
        return self._row_to_rule(row) if row else None

    def insert_rule(self, rule: Rule) -> str:
        """Insert a new rule and return its id.

        Raises:
            DuplicateKeyError: Rule id or path already present.
        """
        values = self._rule_values(rule)
        now = utc_now()
        values.update(id=rule.id, created_at=now, updated_at=now)
        columns = ", ".join(values)
        placeholders = ", ".join(f":{name}" for name in values)
        try:
            with wal_connect(self.db_path) as conn:
                conn.execute(f"INSERT INTO rules ({columns}) VALUES ({placeholders})", values)
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(f"Rule {rule.id} ({rule.path}) already exists: {e}") from e
        return rule.id

    def update_rule(self, rule_id: str, rule: Rule) -> None:
        """Overwrite every mutable field of rule *rule_id* in place.

        Raises:
            StorageError: No row with that id.
            DuplicateKeyError: The new path collides with another rule.
        """
        values = self._rule_values(rule)
        values["updated_at"] = utc_now()
        assignments = ", ".join(f"{name} = :{name}" for name in values)
        values["id"] = rule_id
        try:
            with wal_connect(self.db_path) as conn:
                cursor = conn.execute(f"UPDATE rules SET {assignments} WHERE id = :id", values)
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(f"Rule {rule_id} update conflicts: {e}") from e
        if cursor.rowcount == 0:
            raise StorageError(f"Rule {rule_id} not found")

    def list_rules(self, category_id: Optional[str] = None, limit: Optional[int] = None) -> list[Rule]:
        query = "SELECT * FROM rules"
        params: list = []
        if category_id:
            query += " WHERE category_id = ?"
            params.append(category_id)
        query += " ORDER BY path"
        if limit:
            query += " LIMIT ?"
            params.append(limit)
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_rule(row) for row in rows]

    def list_rule_paths(self) -> dict[str, str]:
        """Map of path -> rule id for every stored rule."""
        with wal_connect(self.db_path) as conn:
            return dict(conn.execute("SELECT path, id FROM rules").fetchall())

    def count_rules(self) -> int:
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM rules").fetchone()[0]

    # --- Categories ---

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(**dict(row))

    def get_category(self, category_id: str) -> Optional[Category]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM categories WHERE id = ?", (category_id,)).fetchone()
        return self._row_to_category(row) if row else None

    def get_category_by_slug(self, slug: str) -> Optional[Category]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM categories WHERE slug = ?", (slug,)).fetchone()
        return self._row_to_category(row) if row else None

    def insert_category(self, category: Category) -> str:
        """Insert a category, generating an id when missing.

        Raises:
            DuplicateKeyError: Slug already taken.
        """
        category_id = category.id or str(uuid.uuid4())
        now = utc_now()
        try:
            with wal_connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO categories
                    (id, name, slug, description, icon, order_index, parent_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        category_id,
                        category.name,
                        category.slug,
                        category.description,
                        category.icon,
                        category.order_index,
                        category.parent_id,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(f"Category slug '{category.slug}' already exists") from e
        return category_id

    def list_categories(self) -> list[Category]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM categories ORDER BY order_index, name").fetchall()
        return [self._row_to_category(row) for row in rows]

    def count_categories(self) -> int:
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0]

    # --- Rule versions (append-only) ---

    def add_rule_version(self, version: RuleVersion) -> int:
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO rule_versions (rule_id, version, content, changes, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (version.rule_id, version.version, version.content, version.changes, utc_now()),
            )
            return cursor.lastrowid

    def get_rule_versions(self, rule_id: str) -> list[RuleVersion]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM rule_versions WHERE rule_id = ? ORDER BY id",
                (rule_id,),
            ).fetchall()
        return [RuleVersion(**dict(row)) for row in rows]

    # --- Sync logs ---

    def add_sync_log(self, log: SyncLog) -> int:
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                INSERT INTO sync_logs
                (sync_type, added_count, updated_count, error_count, errors, duration_ms, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    log.sync_type,
                    log.added_count,
                    log.updated_count,
                    log.error_count,
                    json.dumps(log.errors),
                    log.duration_ms,
                    utc_now(),
                ),
            )
            return cursor.lastrowid

    def get_sync_logs(self, limit: int = 20) -> list[SyncLog]:
        """Most recent sync logs first."""
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM sync_logs ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        logs = []
        for row in rows:
            data = dict(row)
            data["errors"] = _loads(data["errors"]) or []
            logs.append(SyncLog(**data))
        return logs

    def get_last_sync_log(self) -> Optional[SyncLog]:
        logs = self.get_sync_logs(limit=1)
        return logs[0] if logs else None
