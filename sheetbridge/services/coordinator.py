from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from ..errors import ExecutionConflictError
from ..models.execution import ExecutionStatus, ProcessExecution, Trigger
from .status import StatusTracker

"""Single-flight execution coordination.

At most one execution is running at any time. The check-and-set in ``start``
happens under a lock because the scheduler thread and a manual caller may
race for it.
"""

__all__ = ["ExecutionCoordinator", "CANCELLATION"]

logger = logging.getLogger(__name__)

CANCELLATION = "CANCELLATION"


class ExecutionCoordinator:
    def __init__(self, tracker: StatusTracker | None = None) -> None:
        self._lock = threading.Lock()
        self._current: ProcessExecution | None = None
        self.tracker = tracker or StatusTracker()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._current is not None

    @property
    def current(self) -> ProcessExecution | None:
        with self._lock:
            return self._current

    def start(self, trigger: Trigger, now: datetime | None = None) -> ProcessExecution | None:
        """Begin a new execution.

        Returns:
            The running execution, or None when an automatic trigger finds
            another execution in flight

        Raises:
            ExecutionConflictError: a manual trigger finds another execution in flight
        """
        with self._lock:
            if self._current is not None:
                running = self._current
                if trigger is Trigger.MANUAL:
                    raise ExecutionConflictError(running)
                logger.info("skipping automatic run: %s still running", running.id)
                return None
            execution = ProcessExecution.start(trigger, now)
            self._current = execution
            self.tracker.mark_started(execution)
        logger.info("execution %s started (%s)", execution.id, trigger.value)
        return execution

    def complete(
        self,
        execution: ProcessExecution,
        records: int,
        error: dict[str, Any] | None = None,
        downstream_response: dict[str, Any] | None = None,
        warnings: Iterable[dict[str, Any]] = (),
        now: datetime | None = None,
    ) -> bool:
        """Finish ``execution``; False when it was no longer running."""
        with self._lock:
            if not execution.is_running:
                logger.warning(
                    "execution %s already %s; completion ignored", execution.id, execution.status.value
                )
                return False
            execution.finish(
                ExecutionStatus.FAILED if error is not None else ExecutionStatus.COMPLETED,
                records_processed=records,
                error=error,
                downstream_response=downstream_response,
                warnings=list(warnings),
                now=now,
            )
            if self._current is execution:
                self._current = None
            self.tracker.record(execution)
        logger.info(
            "execution %s %s in %dms records=%d",
            execution.id, execution.status.value, execution.duration_ms or 0, records,
        )
        return True

    def cancel(self, reason: str, now: datetime | None = None) -> bool:
        """Force the running execution to cancelled (shutdown path)."""
        with self._lock:
            execution = self._current
            if execution is None:
                return False
            execution.finish(
                ExecutionStatus.CANCELLED,
                records_processed=execution.records_processed,
                error={"message": reason, "type": CANCELLATION},
                now=now,
            )
            self._current = None
            self.tracker.record(execution)
        logger.warning("execution %s cancelled: %s", execution.id, reason)
        return True
