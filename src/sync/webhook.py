"""GitHub push webhook handling: signature check and sync decision."""

import hashlib
import hmac
from dataclasses import dataclass, field
from typing import Optional

import structlog

logger = structlog.get_logger().bind(source="webhook")

SIGNATURE_PREFIX = "sha256="


@dataclass
class WebhookDecision:
    sync: bool
    message: str
    files: list[str] = field(default_factory=list)


def verify_signature(secret: Optional[str], payload: bytes, signature: Optional[str]) -> bool:
    """Check an ``X-Hub-Signature-256`` header against *payload*.

    With no secret configured every delivery is rejected.
    """
    if not secret:
        logger.warning("webhook_secret_missing")
        return False
    if not signature:
        return False
    digest = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"{SIGNATURE_PREFIX}{digest}", signature)


def changed_rule_files(payload: dict, extension: str = ".mdc") -> list[str]:
    """Added or modified rule files across all commits of a push payload."""
    files: list[str] = []
    for commit in payload.get("commits") or []:
        for path in (commit.get("added") or []) + (commit.get("modified") or []):
            if path.endswith(extension) and path not in files:
                files.append(path)
    return files


def decide(
    event: Optional[str],
    payload: dict,
    branches: tuple[str, ...] = ("main", "master"),
    extension: str = ".mdc",
) -> WebhookDecision:
    """Whether a webhook delivery should trigger a sync."""
    if event != "push":
        return WebhookDecision(sync=False, message="Not a push event")

    ref = payload.get("ref", "")
    allowed_refs = {f"refs/heads/{branch}" for branch in branches}
    if ref not in allowed_refs:
        return WebhookDecision(
            sync=False, message=f"Push was to {ref}, not {'/'.join(branches)} branch"
        )

    files = changed_rule_files(payload, extension)
    if not files:
        return WebhookDecision(sync=False, message=f"No {extension} files were modified")

    return WebhookDecision(sync=True, message=f"{len(files)} rule files changed", files=files)
