from __future__ import annotations

import logging
import threading
import time
from collections import deque
from datetime import UTC, datetime, timedelta
from typing import Any

from ..models.execution import ExecutionStatus, ProcessExecution

"""Execution history and status/statistics queries.

History holds the 50 most recent terminal executions in insertion order;
appending the 51st evicts the oldest. The tracker is the only owner of the
history; the coordinator reports starts and completions to it.
"""

__all__ = ["StatusTracker", "MAX_HISTORY"]

logger = logging.getLogger(__name__)

MAX_HISTORY = 50
RECENT_LIMIT = 10


def _summarize(executions: list[ProcessExecution]) -> dict[str, int]:
    return {
        "count": len(executions),
        "successful": sum(1 for e in executions if e.status is ExecutionStatus.COMPLETED),
        "failed": sum(1 for e in executions if e.status is ExecutionStatus.FAILED),
        "recordsProcessed": sum(e.records_processed for e in executions),
    }


class StatusTracker:
    def __init__(self, max_history: int = MAX_HISTORY) -> None:
        self._lock = threading.Lock()
        self._history: deque[ProcessExecution] = deque(maxlen=max_history)
        self._current: ProcessExecution | None = None
        self._last: ProcessExecution | None = None
        self._started_monotonic = time.monotonic()

    @property
    def max_history(self) -> int:
        return self._history.maxlen or MAX_HISTORY

    def mark_started(self, execution: ProcessExecution) -> None:
        with self._lock:
            self._current = execution
            self._last = execution

    def record(self, execution: ProcessExecution) -> None:
        """Append a terminal execution to the history."""
        if not execution.status.is_terminal:
            raise ValueError(f"execution {execution.id} is still running")
        with self._lock:
            if self._current is execution:
                self._current = None
            self._last = execution
            self._history.append(execution)

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._current is not None

    def get_history(self) -> list[dict[str, Any]]:
        """Full history, newest first."""
        with self._lock:
            return [e.to_dict() for e in reversed(self._history)]

    def get_recent_history(self, limit: int = RECENT_LIMIT) -> list[dict[str, Any]]:
        with self._lock:
            items = list(self._history)[-limit:] if limit > 0 else []
        return [e.to_dict() for e in reversed(items)]

    def calculate_stats(self) -> dict[str, Any]:
        with self._lock:
            history = list(self._history)
        if not history:
            return {
                "totalExecutions": 0,
                "successfulExecutions": 0,
                "failedExecutions": 0,
                "cancelledExecutions": 0,
                "successRate": 0.0,
                "averageDuration": 0,
                "totalRecordsProcessed": 0,
                "lastSuccessfulExecution": None,
            }

        successful = [e for e in history if e.status is ExecutionStatus.COMPLETED]
        durations = [e.duration_ms for e in history if e.duration_ms is not None]
        return {
            "totalExecutions": len(history),
            "successfulExecutions": len(successful),
            "failedExecutions": sum(1 for e in history if e.status is ExecutionStatus.FAILED),
            "cancelledExecutions": sum(1 for e in history if e.status is ExecutionStatus.CANCELLED),
            "successRate": round(len(successful) / len(history) * 100, 1),
            "averageDuration": round(sum(durations) / len(durations)) if durations else 0,
            "totalRecordsProcessed": sum(e.records_processed for e in history),
            "lastSuccessfulExecution": successful[-1].to_dict() if successful else None,
        }

    def performance_metrics(self, now: datetime | None = None) -> dict[str, dict[str, int]]:
        """Counts for executions started within the last hour / 24 hours."""
        now = now or datetime.now(UTC)
        with self._lock:
            history = list(self._history)
        return {
            "last24Hours": _summarize([e for e in history if now - e.started_at < timedelta(hours=24)]),
            "lastHour": _summarize([e for e in history if now - e.started_at < timedelta(hours=1)]),
        }

    def get_status(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(UTC)
        with self._lock:
            running = self._current is not None
            last = self._last.to_dict() if self._last is not None else None
        return {
            "isRunning": running,
            "lastExecution": last,
            "recentHistory": self.get_recent_history(RECENT_LIMIT),
            "stats": self.calculate_stats(),
            "serverTime": now.isoformat().replace("+00:00", "Z"),
            "uptimeSeconds": round(time.monotonic() - self._started_monotonic, 3),
        }

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
        logger.info("execution history cleared")
