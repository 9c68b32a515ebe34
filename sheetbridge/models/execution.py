from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

"""ProcessExecution domain model, Trigger and ExecutionStatus enums.

State transitions: running -> (completed | failed | cancelled)

An execution is mutable only while it is running; ``annotate`` and ``finish``
raise ``ExecutionStateError`` on a terminal execution.
"""

__all__ = [
    "Trigger",
    "ExecutionStatus",
    "ExecutionStateError",
    "ProcessExecution",
    "new_execution_id",
]


class Trigger(Enum):
    AUTO = "auto"
    MANUAL = "manual"


class ExecutionStatus(Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


class ExecutionStateError(Exception):
    """Raised when a terminal execution is asked to change."""


def new_execution_id() -> str:
    """``exec_<epoch ms>_<6 hex chars>``; unique for the process lifetime."""
    return f"exec_{time.time_ns() // 1_000_000}_{secrets.token_hex(3)}"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat().replace("+00:00", "Z") if value is not None else None


@dataclass
class ProcessExecution:
    id: str
    trigger: Trigger
    started_at: datetime
    status: ExecutionStatus = ExecutionStatus.RUNNING
    ended_at: datetime | None = None
    records_processed: int = 0
    error: dict[str, Any] | None = None
    downstream_response: dict[str, Any] | None = None
    duration_ms: int | None = None
    warnings: list[dict[str, Any]] = field(default_factory=list)
    source_file: str | None = None
    variant: str | None = None

    @classmethod
    def start(cls, trigger: Trigger, now: datetime | None = None) -> ProcessExecution:
        return cls(id=new_execution_id(), trigger=trigger, started_at=now or datetime.now(UTC))

    @property
    def is_running(self) -> bool:
        return self.status is ExecutionStatus.RUNNING

    def _ensure_running(self) -> None:
        if not self.is_running:
            raise ExecutionStateError(f"execution {self.id} is already {self.status.value}")

    def annotate(self, *, source_file: str | None = None, variant: str | None = None) -> None:
        """Attach the selected source file / variant while running."""
        self._ensure_running()
        if source_file is not None:
            self.source_file = source_file
        if variant is not None:
            self.variant = variant

    def finish(
        self,
        status: ExecutionStatus,
        *,
        records_processed: int = 0,
        error: dict[str, Any] | None = None,
        downstream_response: dict[str, Any] | None = None,
        warnings: list[dict[str, Any]] | None = None,
        now: datetime | None = None,
    ) -> None:
        self._ensure_running()
        if not status.is_terminal:
            raise ExecutionStateError("finish() requires a terminal status")
        if records_processed < 0:
            raise ValueError("records_processed must be >= 0")
        ended = now or datetime.now(UTC)
        self.ended_at = ended
        self.duration_ms = max(int((ended - self.started_at).total_seconds() * 1000), 0)
        self.records_processed = records_processed
        self.error = error
        self.downstream_response = downstream_response
        if warnings:
            self.warnings = list(warnings)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "trigger": self.trigger.value,
            "status": self.status.value,
            "startedAt": _iso(self.started_at),
            "endedAt": _iso(self.ended_at),
            "recordsProcessed": self.records_processed,
            "error": self.error,
            "downstreamResponse": self.downstream_response,
            "duration": self.duration_ms,
            "warnings": list(self.warnings),
            "sourceFile": self.source_file,
            "variant": self.variant,
        }
