"""GitHub webhook route."""

import json
from typing import Callable, Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request

from cli.config_models import RulesyncConfig
from shared_types import SyncType
from sync import RuleSyncEngine
from sync.webhook import decide, verify_signature
from web.deps import get_config, get_engine_factory

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/github")
async def github_webhook(
    request: Request,
    x_hub_signature_256: Optional[str] = Header(default=None),
    x_github_event: Optional[str] = Header(default=None),
    config: RulesyncConfig = Depends(get_config),
    engine_factory: Callable[..., RuleSyncEngine] = Depends(get_engine_factory),
):
    payload_bytes = await request.body()
    if not verify_signature(config.webhook.secret, payload_bytes, x_hub_signature_256):
        logger.warning("webhook.invalid_signature", github_event=x_github_event)
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(payload_bytes or b"{}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    decision = decide(
        x_github_event,
        payload,
        branches=tuple(config.webhook.branches),
        extension=config.layout.extension,
    )
    if not decision.sync:
        logger.info("webhook.ignored", reason=decision.message)
        return {"message": decision.message}

    engine = engine_factory(sync_type=SyncType.WEBHOOK)
    async with engine.source:
        result = await engine.sync_all()

    logger.info("webhook.sync_completed", files=len(decision.files), added=result.added)
    return {
        "message": "Sync completed successfully",
        "changed_files": decision.files,
        "result": result.to_dict(),
    }
