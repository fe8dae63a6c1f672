"""Build sources and engines from a config dict."""

from pathlib import Path
from typing import Optional

from rules.storage import RuleStorage
from shared_types import SyncType

from .engine import RuleSyncEngine, SyncOptions
from .sources import GitHubRuleSource, LocalRuleSource, RuleSource


def _layout(config: dict) -> dict:
    layout = config.get("layout", {})
    return {
        "root_marker": layout.get("root_marker", ".ai"),
        "container": layout.get("container", "rules"),
        "extension": layout.get("extension", ".mdc"),
    }


def build_source(config: dict, local_dir: Optional[str | Path] = None) -> RuleSource:
    """Local checkout when *local_dir* (or ``layout.local_dir``) is set, else GitHub."""
    local_dir = local_dir or config.get("layout", {}).get("local_dir")
    if local_dir:
        return LocalRuleSource(local_dir, **_layout(config))

    github = config.get("github", {})
    retry = config.get("retry", {})
    return GitHubRuleSource(
        owner=github.get("owner", "idominikosgr"),
        repo=github.get("repo", "VibeKit-VDK-AI-rules"),
        branch=github.get("branch", "main"),
        token=github.get("token"),
        api_url=github.get("api_url", "https://api.github.com"),
        timeout=github.get("timeout", 30.0),
        max_attempts=retry.get("max_attempts", 3),
        min_wait=retry.get("min_wait", 2.0),
        max_wait=retry.get("max_wait", 10.0),
        **_layout(config),
    )


def build_engine(
    config: dict,
    storage: RuleStorage,
    source: Optional[RuleSource] = None,
    local_dir: Optional[str | Path] = None,
    **overrides,
) -> RuleSyncEngine:
    """Engine over *source* (built from config when omitted).

    *overrides* replace SyncOptions fields, e.g. ``concurrency=10``.
    """
    source = source or build_source(config, local_dir)
    sync = config.get("sync", {})
    layout = _layout(config)
    options = {
        "concurrency": sync.get("concurrency", 5),
        "sync_type": (
            SyncType.LOCAL
            if isinstance(source, LocalRuleSource)
            else sync.get("sync_type", SyncType.GITHUB)
        ),
        "deadline_seconds": sync.get("deadline_seconds"),
        "root_marker": layout["root_marker"],
        "container": layout["container"],
    }
    options.update({k: v for k, v in overrides.items() if v is not None})
    return RuleSyncEngine(source, storage, SyncOptions(**options))
