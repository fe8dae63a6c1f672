"""Tests for sync result aggregation."""

from shared_types import SyncOutcome
from sync.models import ReconcileOutcome, SyncResult


class TestSyncResult:
    def test_record_outcomes(self):
        result = SyncResult()
        result.record(ReconcileOutcome("a.mdc", SyncOutcome.ADDED, rule_id="a"))
        result.record(ReconcileOutcome("b.mdc", SyncOutcome.UPDATED, rule_id="b"))
        result.record(ReconcileOutcome("c.mdc", SyncOutcome.ERROR, error="c.mdc: boom"))
        result.record(ReconcileOutcome("d.mdc", SyncOutcome.SKIPPED))

        assert result.added == 1
        assert result.updated == 1
        assert result.errors == ["c.mdc: boom", "d.mdc: unknown error"]

    def test_to_dict(self):
        data = SyncResult(added=1, errors=["x"], duration_ms=5).to_dict()
        assert data == {
            "added": 1,
            "updated": 0,
            "errors": ["x"],
            "duration_ms": 5,
            "sync_type": "github",
            "error_count": 1,
        }
