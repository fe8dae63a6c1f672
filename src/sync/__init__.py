"""Rule sync: reconcile a remote rules repository into the local rule store."""

from .categories import CategoryResolver
from .engine import RuleSyncEngine, SyncOptions, run_sync
from .errors import CategoryResolutionError, FetchError, RuleSyncError, SourceError
from .factory import build_engine, build_source
from .models import ReconcileOutcome, SyncResult
from .sources import GitHubRuleSource, LocalRuleSource, RuleSource
from .sync_log import SyncLogger, sync_stats

__all__ = [
    "RuleSyncEngine",
    "SyncOptions",
    "run_sync",
    "SyncResult",
    "ReconcileOutcome",
    "RuleSource",
    "GitHubRuleSource",
    "LocalRuleSource",
    "CategoryResolver",
    "SyncLogger",
    "sync_stats",
    "build_engine",
    "build_source",
    "RuleSyncError",
    "SourceError",
    "FetchError",
    "CategoryResolutionError",
]
