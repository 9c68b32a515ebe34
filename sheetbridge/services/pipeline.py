from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from ..config.loader import SyncConfig
from ..errors import SheetBridgeError, serialize_error
from ..excel.transform import transform_workbook
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary
from ..models.dataset import ParsedDataset
from ..models.error_record import FILE_LEVEL
from ..models.execution import Trigger
from ..models.processing_result import CycleResult, PublishOutcome
from ..models.source_file import SourceFile, SourceVariant
from .classifier import classify
from .coordinator import ExecutionCoordinator
from .locator import SourceLocator
from .progress import ProgressTracker
from .publisher import OutputPublisher
from .summary import render_summary_line

"""Cycle orchestration: locate -> classify -> transform -> publish.

``execute_cycle`` is the error boundary of a cycle. Every stage failure is
caught here, serialized onto the execution and written to the error log; the
only exception that leaves is ExecutionConflictError for a manual trigger.

Success criterion: the execution is ``completed`` when the transformation and
the local artifact write succeed. Portal and storage failures after that point
are warnings, unless ``publish_failure_fails_cycle`` is set, in which case a
portal failure marks the execution ``failed``.
"""

__all__ = ["SyncPipeline"]

logger = logging.getLogger(__name__)


class SyncPipeline:
    def __init__(
        self,
        cfg: SyncConfig,
        coordinator: ExecutionCoordinator,
        locator: SourceLocator,
        publisher: OutputPublisher,
        transform: Callable[..., ParsedDataset] = transform_workbook,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.cfg = cfg
        self.coordinator = coordinator
        self.locator = locator
        self.publisher = publisher
        self._transform = transform
        self._clock = clock or (lambda: datetime.now(UTC))

    def execute_cycle(self, trigger: Trigger) -> CycleResult | None:
        """Run one cycle.

        Returns:
            CycleResult for the finished execution, or None when an automatic
            trigger was skipped because another execution is running

        Raises:
            ExecutionConflictError: manual trigger while another execution runs
        """
        execution = self.coordinator.start(trigger, self._clock())
        if execution is None:
            return None

        error_log = ErrorLogBuffer(self.cfg.paths.logs_dir)
        warnings: list[dict[str, Any]] = []
        source: SourceFile | None = None
        variant: SourceVariant | None = None
        dataset: ParsedDataset | None = None
        outcome: PublishOutcome | None = None
        error: dict[str, Any] | None = None

        with ProgressTracker() as progress:
            try:
                progress.start_stage("locate")
                source = self.locator.locate_and_fetch(self.cfg.storage.inbox_prefix, warnings)
                variant = classify(source.name)
                execution.annotate(source_file=source.name, variant=variant.value)
                logger.info("source=%s variant=%s", source.name, variant.value)
                progress.finish_stage()

                progress.start_stage("transform")
                local_path = source.local_path or self.locator.working_path(source.extension)
                dataset = self._transform(
                    variant, local_path, self.cfg,
                    error_log=error_log, file_name=source.name, now=self._clock(),
                )
                progress.set_postfix(records=dataset.record_count)
                progress.finish_stage()

                progress.start_stage("publish")
                outcome = self.publisher.publish(source, variant, dataset, now=self._clock())
                if outcome.publish_error is not None and self.cfg.publish_failure_fails_cycle:
                    error = outcome.publish_error.to_dict()
                    warnings.extend(w for w in outcome.warnings if w["type"] != error["type"])
                else:
                    warnings.extend(outcome.warnings)
                progress.finish_stage()
            except SheetBridgeError as e:
                logger.error("cycle failed: %s: %s", e.error_type, e.message)
                error = e.to_dict()
            except Exception as e:
                logger.exception("cycle failed unexpectedly: %s", e)
                error = serialize_error(e)

        file_name = source.name if source is not None else ""
        if error is not None:
            error_log.add(file_name, FILE_LEVEL, -1, error["type"], error["message"])
        for w in warnings:
            error_log.add(file_name, FILE_LEVEL, -1, w["type"], w["message"])

        records = dataset.record_count if dataset is not None else 0
        self.coordinator.complete(
            execution,
            records,
            error=error,
            downstream_response=outcome.portal_response if outcome is not None else None,
            warnings=warnings,
            now=self._clock(),
        )

        try:
            log_path = error_log.flush()
        except OSError as e:
            logger.warning("error log not written (%d records): %s", len(error_log), e)
        else:
            if log_path is not None:
                logger.warning("error log written: %s", log_path)

        result = CycleResult(
            execution=execution,
            source=source,
            variant=variant,
            dataset=dataset,
            outcome=outcome,
            halt_automatic=bool(outcome is not None and outcome.requires_operator),
        )
        log_summary(render_summary_line(result))
        return result
