"""Sync run result types."""

from dataclasses import asdict, dataclass, field
from typing import Optional

from shared_types import SyncOutcome, SyncType


@dataclass
class ReconcileOutcome:
    """Result of reconciling one document."""

    path: str
    status: SyncOutcome
    rule_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SyncResult:
    """Aggregate of one sync run. Counts are commutative, error order is arbitrary."""

    added: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0
    sync_type: str = SyncType.GITHUB

    def record(self, outcome: ReconcileOutcome) -> None:
        if outcome.status == SyncOutcome.ADDED:
            self.added += 1
        elif outcome.status == SyncOutcome.UPDATED:
            self.updated += 1
        else:
            self.errors.append(outcome.error or f"{outcome.path}: unknown error")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["sync_type"] = str(self.sync_type)
        data["error_count"] = len(self.errors)
        return data
