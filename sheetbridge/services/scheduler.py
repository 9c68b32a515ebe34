from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime, timedelta
from typing import Any

from ..models.execution import Trigger
from ..models.processing_result import CycleResult
from .pipeline import SyncPipeline

"""Interval scheduler and manual trigger adapter.

Automatic cycles run on a daemon thread every ``interval_minutes``. A cycle
that reports an operator-required portal error (401/403) halts automatic
cycles until the process restarts; manual triggers keep working.
"""

__all__ = ["IntervalScheduler", "STOP_REASON"]

logger = logging.getLogger(__name__)

STOP_REASON = "Service stopped"


class IntervalScheduler:
    def __init__(
        self,
        pipeline: SyncPipeline,
        interval_minutes: float = 10,
        run_on_startup: bool = False,
        startup_delay_seconds: float = 5,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be > 0")
        self.pipeline = pipeline
        self.interval_minutes = interval_minutes
        self.run_on_startup = run_on_startup
        self.startup_delay_seconds = startup_delay_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_tick: datetime | None = None
        self._started_at: datetime | None = None
        self.halted = False
        self.halt_reason: str | None = None

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60

    @property
    def is_active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_active:
            logger.warning("scheduler already running")
            return
        # one event per loop thread
        self._stop_event = threading.Event()
        self._started_at = datetime.now(UTC)
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="sheetbridge-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            "scheduler started: every %s min (run_on_startup=%s)", self.interval_minutes, self.run_on_startup
        )

    def _run(self, stop_event: threading.Event) -> None:
        if self.run_on_startup and not stop_event.wait(self.startup_delay_seconds):
            self._tick()
        while not stop_event.wait(self.interval_seconds):
            self._tick()
        logger.debug("scheduler loop exited")

    def _tick(self) -> CycleResult | None:
        if self.halted:
            logger.warning("automatic run skipped: halted (%s)", self.halt_reason)
            return None
        self._last_tick = datetime.now(UTC)
        try:
            result = self.pipeline.execute_cycle(Trigger.AUTO)
        except Exception as e:
            # the loop outlives a crashed cycle
            logger.exception("automatic run crashed: %s", e)
            return None
        self._check_halt(result)
        return result

    def _check_halt(self, result: CycleResult | None) -> None:
        if result is None or not result.halt_automatic or self.halted:
            return
        err = result.outcome.publish_error if result.outcome is not None else None
        self.halted = True
        self.halt_reason = str(err) if err is not None else "portal rejected credentials"
        logger.error("automatic runs halted until restart: %s", self.halt_reason)

    def trigger_manual(self) -> CycleResult | None:
        """Run one cycle synchronously; ExecutionConflictError propagates."""
        result = self.pipeline.execute_cycle(Trigger.MANUAL)
        self._check_halt(result)
        return result

    def _join(self, timeout: float | None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("scheduler thread still busy after %ss", timeout)
            self._thread = None

    def stop(self, reason: str = STOP_REASON, timeout: float | None = 30) -> None:
        """Signal the loop, cancel any running execution and join the thread."""
        self._stop_event.set()
        if self.pipeline.coordinator.cancel(reason):
            logger.info("running execution cancelled on stop")
        self._join(timeout)
        logger.info("scheduler stopped")

    def restart(self, interval_minutes: float | None = None, timeout: float | None = 30) -> None:
        """Restart the loop, optionally on a new interval.

        A running execution is left to finish; the halted state is kept.
        """
        if interval_minutes is not None and interval_minutes <= 0:
            raise ValueError("interval_minutes must be > 0")
        was_active = self.is_active
        self._join(timeout)
        if interval_minutes is not None and interval_minutes != self.interval_minutes:
            logger.info("interval changed: %s -> %s min", self.interval_minutes, interval_minutes)
            self.interval_minutes = interval_minutes
        if was_active:
            self.start()
        else:
            logger.info("scheduler not active; interval stored")

    def next_tick(self) -> datetime | None:
        if not self.is_active:
            return None
        base = self._last_tick or self._started_at
        if base is None:
            return None
        return base + timedelta(seconds=self.interval_seconds)

    def status(self) -> dict[str, Any]:
        nxt = self.next_tick()
        return {
            "active": self.is_active,
            "intervalMinutes": self.interval_minutes,
            "lastTick": self._last_tick.isoformat() if self._last_tick else None,
            "nextTick": nxt.isoformat() if nxt else None,
            "halted": self.halted,
            "haltReason": self.halt_reason,
            "executionRunning": self.pipeline.coordinator.is_running,
        }
