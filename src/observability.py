"""Observability: pipeline counters, timers and run summary logging."""

import threading
import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """Dict-based counters and timers, safe to share across API worker threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        # name -> running aggregates; individual durations are not kept
        self._timers: dict[str, dict[str, float]] = {}

    def counter(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Time the enclosed block under ``name``."""
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            with self._lock:
                agg = self._timers.setdefault(name, {"count": 0, "total": 0.0, "max": 0.0})
                agg["count"] += 1
                agg["total"] += duration
                agg["max"] = max(agg["max"], duration)

    def summary(self) -> dict[str, Any]:
        with self._lock:
            timer_summary = {
                name: {
                    "count": agg["count"],
                    "total": agg["total"],
                    "avg": agg["total"] / agg["count"],
                    "max": agg["max"],
                }
                for name, agg in self._timers.items()
            }
            return {"counters": dict(self._counters), "timers": timer_summary}

    def reset(self):
        with self._lock:
            self._counters.clear()
            self._timers.clear()


# Module-level singleton
metrics = Metrics()


def log_run_summary():
    """Log the current metrics summary via structlog."""
    logger.info("run_summary", **metrics.summary())
