"""Sync audit trail: one sync_logs row per run, plus summary stats."""

from dataclasses import asdict
from typing import Optional

import structlog

from rules.models import SyncLog
from rules.storage import RuleStorage

from .models import SyncResult

logger = structlog.get_logger().bind(source="sync_log")


class SyncLogger:
    """Persist sync results. Never raises."""

    def __init__(self, storage: RuleStorage):
        self.storage = storage

    def log(self, result: SyncResult) -> Optional[int]:
        """Write *result* as a sync_logs row and return its id, or None on failure."""
        try:
            log_id = self.storage.add_sync_log(
                SyncLog(
                    sync_type=str(result.sync_type),
                    added_count=result.added,
                    updated_count=result.updated,
                    error_count=len(result.errors),
                    errors=list(result.errors),
                    duration_ms=result.duration_ms,
                )
            )
        except Exception as e:
            logger.error("sync_log_write_failed", error=str(e), error_type=type(e).__name__)
            return None

        logger.info(
            "sync_logged",
            log_id=log_id,
            sync_type=str(result.sync_type),
            added=result.added,
            updated=result.updated,
            errors=len(result.errors),
            duration_ms=result.duration_ms,
        )
        return log_id


def sync_stats(storage: RuleStorage) -> dict:
    """Rule and category counts plus the most recent sync log."""
    last = storage.get_last_sync_log()
    return {
        "rule_count": storage.count_rules(),
        "category_count": storage.count_categories(),
        "last_sync": asdict(last) if last else None,
    }
