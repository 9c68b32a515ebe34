from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .dataset import ParsedDataset
from .execution import ProcessExecution
from .source_file import SourceFile, SourceVariant

"""Result models for the publish step and for a whole cycle."""


@dataclass(frozen=True)
class Destination:
    """Portal target for one artifact."""
    account: str
    site: str
    file_name: str  # googlesheet.json | locations.json | sellers.json


@dataclass
class PublishOutcome:
    """What happened after the local artifact was written.

    ``warnings`` holds serialized DownstreamPublishError /
    StorageLifecycleError entries; steps that failed never raise.
    """
    artifact_path: Path
    destination: Destination
    published: bool = False
    portal_response: dict[str, Any] | None = None
    publish_error: Any = None  # DownstreamPublishError | None
    archive_key: str | None = None
    retired_key: str | None = None
    removed_keys: list[str] = field(default_factory=list)
    warnings: list[dict[str, Any]] = field(default_factory=list)

    @property
    def requires_operator(self) -> bool:
        return bool(self.publish_error is not None and self.publish_error.requires_operator)


@dataclass(frozen=True)
class CycleResult:
    """Terminal view of one executed cycle, returned to the trigger."""
    execution: ProcessExecution
    source: SourceFile | None = None
    variant: SourceVariant | None = None
    dataset: ParsedDataset | None = None
    outcome: PublishOutcome | None = None
    halt_automatic: bool = False

    @property
    def succeeded(self) -> bool:
        return self.execution.error is None and self.execution.status.value == "completed"

    @property
    def has_warnings(self) -> bool:
        return bool(self.execution.warnings)
