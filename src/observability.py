"""Observability: in-process sync counters and timers, logged as a run summary."""

import time
from collections import Counter, defaultdict
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """Counters and millisecond timers for sync runs.

    Updated from the event loop only; worker threads never touch it.
    """

    def __init__(self):
        self._counters: Counter[str] = Counter()
        self._timers_ms: defaultdict[str, list[int]] = defaultdict(list)

    def counter(self, name: str, value: int = 1):
        self._counters[name] += value

    def get(self, name: str) -> int:
        return self._counters[name]

    @contextmanager
    def timer(self, name: str):
        """Record the wall time of the block under *name*, in milliseconds."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._timers_ms[name].append(int((time.monotonic() - start) * 1000))

    def summary(self) -> dict[str, Any]:
        return {
            "counters": dict(self._counters),
            "timers": {
                name: {
                    "count": len(samples),
                    "total_ms": sum(samples),
                    "max_ms": max(samples),
                }
                for name, samples in self._timers_ms.items()
                if samples
            },
        }

    def reset(self):
        self._counters.clear()
        self._timers_ms.clear()


# Module-level singleton
metrics = Metrics()


def log_run_summary(**context):
    """Log the current metrics summary, plus any run context, via structlog."""
    logger.info("run_summary", **context, **metrics.summary())
