"""Sync trigger, stats, and log routes."""

from dataclasses import asdict
from typing import Callable, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from rules.storage import RuleStorage
from sync import RuleSyncEngine, SourceError, sync_stats
from web.deps import get_engine_factory, get_storage

logger = structlog.get_logger()

router = APIRouter(prefix="/api/sync", tags=["sync"])


class SyncRequest(BaseModel):
    category: Optional[str] = None


@router.post("")
async def trigger_sync(
    body: Optional[SyncRequest] = None,
    engine_factory: Callable[..., RuleSyncEngine] = Depends(get_engine_factory),
):
    category = body.category if body else None
    engine = engine_factory()
    async with engine.source:
        if category:
            result = await engine.sync_category(category)
        else:
            result = await engine.sync_all()
    logger.info("api.sync_completed", category=category, added=result.added, errors=len(result.errors))
    return result.to_dict()


@router.get("/stats")
async def get_stats(storage: RuleStorage = Depends(get_storage)):
    return sync_stats(storage)


@router.get("/logs")
async def get_logs(
    limit: int = Query(default=20, ge=1, le=200),
    storage: RuleStorage = Depends(get_storage),
):
    return [asdict(log) for log in storage.get_sync_logs(limit=limit)]


@router.get("/orphans")
async def get_orphans(engine_factory: Callable[..., RuleSyncEngine] = Depends(get_engine_factory)):
    engine = engine_factory()
    try:
        async with engine.source:
            found = await engine.find_orphans()
    except SourceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [{"path": path, "rule_id": rule_id} for path, rule_id in found]
