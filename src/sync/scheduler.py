"""Scheduled sync runs."""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import structlog
from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from observability import log_run_summary

from .engine import RuleSyncEngine
from .models import SyncResult

logger = structlog.get_logger().bind(source="sync_scheduler")

DEFAULT_STATUS_PATH = Path("~/.rulesync/last_run_status.json")


def parse_cron(expr: str) -> CronTrigger:
    """Parse a 5-field cron expression (min hour day month dow) into a CronTrigger."""
    parts = expr.split()
    if len(parts) != 5:
        raise ValueError(f"Cron must have 5 fields, got {len(parts)}: {expr}")
    minute, hour, day, month, day_of_week = parts
    return CronTrigger(
        minute=minute, hour=hour, day=day, month=month, day_of_week=day_of_week
    )


class SyncScheduler:
    """Runs full syncs on a cron schedule.

    *engine_factory* builds a fresh engine per run: HTTP clients are bound to
    the event loop of the run that created them.
    """

    def __init__(
        self,
        engine_factory: Callable[[], RuleSyncEngine],
        status_path: Path = DEFAULT_STATUS_PATH,
        on_error: Optional[Callable] = None,
    ):
        self.engine_factory = engine_factory
        self.status_path = Path(status_path).expanduser()
        self.on_error = on_error
        self.scheduler = BackgroundScheduler()

    async def _run_async(self) -> SyncResult:
        engine = self.engine_factory()
        async with engine.source:
            return await engine.sync_all()

    def run_now(self) -> SyncResult:
        """Run one full sync from sync context."""
        result = asyncio.run(self._run_async())
        self._write_status("ok" if not result.errors else "partial", result.to_dict())
        log_run_summary(sync_type=str(result.sync_type), errors=len(result.errors))
        return result

    def _write_status(self, status: str, data: dict):
        self.status_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"status": status, "timestamp": datetime.now().isoformat(), **data}
        self.status_path.write_text(json.dumps(payload, indent=2))

    def _default_error_handler(self, event):
        """APScheduler job failure listener."""
        logger.error(
            "job_error",
            job_id=event.job_id,
            exception=str(event.exception),
            traceback=event.traceback,
        )
        self._write_status("error", {"job_id": event.job_id, "error": str(event.exception)})

        if self.on_error:
            try:
                self.on_error(event)
            except Exception as e:
                logger.error("on_error_callback_failed", error=str(e))

    def start(self, cron_expr: str = "0 */6 * * *"):
        """Start scheduled syncing."""
        self.scheduler.add_job(
            self.run_now,
            trigger=parse_cron(cron_expr),
            id="rule_sync",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.add_listener(self._default_error_handler, EVENT_JOB_ERROR)
        self.scheduler.start()
        logger.info("sync_scheduler_started", cron=cron_expr)

    def stop(self):
        self.scheduler.shutdown()
