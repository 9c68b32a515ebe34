from __future__ import annotations

from typing import Any

"""Error taxonomy for the sheet -> portal sync pipeline.

Every stage-level failure of a cycle is one of these classes. They are caught
at the cycle boundary by the pipeline, serialized onto the execution record and
written to the error log; none of them is allowed to crash the process.

Each class carries an UPPER_SNAKE ``error_type`` used both in the execution
history and in the JSON Lines error log.
"""

__all__ = [
    "SheetBridgeError",
    "NoCandidateFilesError",
    "TransformationError",
    "ArtifactWriteError",
    "DownstreamPublishError",
    "StorageLifecycleError",
    "ExecutionConflictError",
    "serialize_error",
]


class SheetBridgeError(Exception):
    """Base exception for all pipeline errors."""

    error_type = "SHEETBRIDGE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.error_type,
            "code": getattr(self, "code", None),
            "statusCode": getattr(self, "status_code", None),
            "details": self.details or None,
        }


class NoCandidateFilesError(SheetBridgeError):
    """Inbox folder is empty or holds no .xlsx/.xls object."""

    error_type = "NO_CANDIDATE_FILES"


class TransformationError(SheetBridgeError):
    """Workbook could not be opened or has no worksheets."""

    error_type = "TRANSFORMATION_ERROR"


class ArtifactWriteError(SheetBridgeError):
    """Local JSON artifact could not be written."""

    error_type = "ARTIFACT_WRITE_ERROR"


class DownstreamPublishError(SheetBridgeError):
    """Portal call failed (network, auth, rate limit, server error).

    ``requires_operator`` marks credential problems (401/403): automatic
    triggers stop until the process is restarted. ``transient`` marks
    failures expected to clear on a later cycle (429, 5xx, network).
    """

    error_type = "DOWNSTREAM_PUBLISH_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code

    @property
    def requires_operator(self) -> bool:
        return self.status_code in (401, 403)

    @property
    def transient(self) -> bool:
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["requiresOperator"] = self.requires_operator
        data["transient"] = self.transient
        return data


class StorageLifecycleError(SheetBridgeError):
    """Archive upload, move or cleanup in object storage failed."""

    error_type = "STORAGE_LIFECYCLE_ERROR"

    def __init__(self, message: str, key: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.code = key


class ExecutionConflictError(SheetBridgeError):
    """A manual trigger arrived while another execution is running."""

    error_type = "EXECUTION_CONFLICT"

    def __init__(self, running: Any) -> None:
        started = getattr(running, "started_at", None)
        super().__init__(
            "an execution is already running",
            {
                "executionId": getattr(running, "id", None),
                "startedAt": started.isoformat() if started is not None else None,
            },
        )
        self.running = running


def serialize_error(error: BaseException) -> dict[str, Any]:
    """Structured form of any exception for the execution record."""
    if isinstance(error, SheetBridgeError):
        return error.to_dict()
    return {
        "message": str(error) or error.__class__.__name__,
        "type": "UNEXPECTED_ERROR",
        "code": error.__class__.__name__,
        "statusCode": None,
        "details": None,
    }
