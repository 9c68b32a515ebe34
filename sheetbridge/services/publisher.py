from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from decimal import Decimal
from pathlib import Path, PurePosixPath
from typing import Any

import numpy as np

from ..config.loader import SyncConfig
from ..errors import ArtifactWriteError, DownstreamPublishError, StorageLifecycleError
from ..models.dataset import ParsedDataset
from ..models.processing_result import Destination, PublishOutcome
from ..models.source_file import SourceFile, SourceVariant, spreadsheet_extension
from ..portal.client import PortalClient
from ..storage.object_store import ObjectStore
from .classifier import environment_tag

"""Output publishing: local artifact -> portal -> archive -> inbox cleanup.

Only the local artifact write can fail the cycle (ArtifactWriteError). The
remote steps run in order regardless of each other's outcome and report their
failures through ``PublishOutcome.warnings``.
"""

__all__ = [
    "OutputPublisher",
    "VariantTarget",
    "TARGETS",
    "ARTIFACT_VERSION",
    "json_default",
]

logger = logging.getLogger(__name__)

ARTIFACT_VERSION = "1.0"
ARCHIVE_STAMP_FMT = "%Y%m%d_%H%M%S"


@dataclass(frozen=True)
class VariantTarget:
    file_name: str       # portal file replaced on publish
    archive_prefix: str  # archive JSON name prefix


TARGETS: dict[SourceVariant, VariantTarget] = {
    SourceVariant.HOME: VariantTarget("googlesheet.json", "googleSheet"),
    SourceVariant.LOCATIONS: VariantTarget("locations.json", "locations"),
    SourceVariant.SELLERS: VariantTarget("sellers.json", "sellers"),
}


def json_default(value: Any) -> Any:
    """``json.dumps`` fallback for values pandas may hand back."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class OutputPublisher:
    def __init__(
        self,
        store: ObjectStore,
        portal: PortalClient,
        cfg: SyncConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._portal = portal
        self._cfg = cfg
        self._clock = clock or (lambda: datetime.now(UTC))

    # -- local artifact -------------------------------------------------

    def build_envelope(self, source: SourceFile, dataset: ParsedDataset, now: datetime) -> dict[str, Any]:
        return {
            "metadata": {
                "processedAt": now.astimezone(self._cfg.tz).isoformat(),
                "recordCount": dataset.record_count,
                "sourceFile": source.name,
                "version": ARTIFACT_VERSION,
            },
            "data": dataset.to_json_data(),
        }

    def write_artifact(self, envelope: dict[str, Any]) -> tuple[Path, str]:
        """Serialize and write the artifact, replacing any previous one.

        Returns:
            (artifact path, serialized text)

        Raises:
            ArtifactWriteError: serialization or file write failed
        """
        path = self._cfg.paths.output_json
        try:
            text = json.dumps(envelope, ensure_ascii=False, indent=2, default=json_default)
        except (TypeError, ValueError) as e:
            raise ArtifactWriteError(f"artifact is not serializable: {e}", {"path": str(path)}) from e
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise ArtifactWriteError(f"cannot write artifact {path}: {e}", {"path": str(path)}) from e
        logger.info("artifact written: %s (%d bytes)", path, len(text.encode("utf-8")))
        return path, text

    # -- destination ----------------------------------------------------

    def resolve_destination(self, variant: SourceVariant, source_name: str) -> Destination:
        """Portal account/site from the environment tag, file name from the variant."""
        target = TARGETS[variant.effective]
        portal = self._cfg.portal
        tag = environment_tag(source_name)
        env = portal.environments.get(tag) if tag else None
        if env is None:
            if tag:
                logger.debug("environment tag %s not configured; using default account", tag)
            return Destination(portal.default_account, portal.default_site, target.file_name)
        return Destination(env.account, env.site, target.file_name)

    # -- archive --------------------------------------------------------

    def _unique_key(self, key: str) -> str:
        if not self._store.exists(key):
            return key
        p = PurePosixPath(key)
        n = 1
        while True:
            candidate = str(p.with_name(f"{p.stem}_{n}{p.suffix}"))
            if not self._store.exists(candidate):
                return candidate
            n += 1

    def archive_key(self, variant: SourceVariant, now: datetime) -> str:
        stamp = now.astimezone(self._cfg.tz).strftime(ARCHIVE_STAMP_FMT)
        prefix = TARGETS[variant.effective].archive_prefix
        return self._unique_key(f"{self._cfg.storage.archive_prefix}{prefix}_{stamp}.json")

    def _retire_source(self, source: SourceFile) -> str:
        dst = self._unique_key(f"{self._cfg.storage.archive_prefix}{source.name}")
        self._store.move(source.remote_path, dst)
        logger.info("moved %s -> %s", source.remote_path, dst)
        return dst

    def _cleanup_inbox(self, source: SourceFile, outcome: PublishOutcome) -> None:
        inbox = self._cfg.storage.inbox_prefix
        for obj in self._store.list_objects(inbox):
            if obj.key == source.remote_path or spreadsheet_extension(obj.key) is None:
                continue
            try:
                self._store.delete(obj.key)
                outcome.removed_keys.append(obj.key)
                logger.info("deleted leftover inbox file %s", obj.key)
            except StorageLifecycleError as e:
                logger.warning("could not delete %s: %s", obj.key, e)
                outcome.warnings.append(e.to_dict())

    # -- publish --------------------------------------------------------

    def publish(
        self,
        source: SourceFile,
        variant: SourceVariant,
        dataset: ParsedDataset,
        now: datetime | None = None,
    ) -> PublishOutcome:
        """Write, publish and archive one parsed dataset.

        Args:
            source: Spreadsheet the dataset came from
            variant: Classified variant of ``source``
            dataset: Parsed dataset
            now: Processing time (defaults to the publisher clock)

        Returns:
            PublishOutcome; remote failures are listed in ``warnings``

        Raises:
            ArtifactWriteError: the local artifact could not be written
        """
        now = now or self._clock()
        envelope = self.build_envelope(source, dataset, now)
        artifact_path, text = self.write_artifact(envelope)
        destination = self.resolve_destination(variant, source.name)
        outcome = PublishOutcome(artifact_path=artifact_path, destination=destination)

        try:
            outcome.portal_response = self._portal.replace_file(destination, text)
            outcome.published = True
        except DownstreamPublishError as e:
            logger.error("publish to %s/%s failed: %s", destination.account, destination.file_name, e)
            outcome.publish_error = e
            outcome.warnings.append(e.to_dict())

        try:
            key = self.archive_key(variant, now)
            outcome.archive_key = self._store.upload(artifact_path, key, content_type="application/json")
            logger.info("archived artifact as %s", key)
        except StorageLifecycleError as e:
            logger.warning("archive upload failed: %s", e)
            outcome.warnings.append(e.to_dict())

        try:
            outcome.retired_key = self._retire_source(source)
        except StorageLifecycleError as e:
            logger.warning("could not retire %s: %s", source.remote_path, e)
            outcome.warnings.append(e.to_dict())

        try:
            self._cleanup_inbox(source, outcome)
        except StorageLifecycleError as e:
            logger.warning("inbox cleanup failed: %s", e)
            outcome.warnings.append(e.to_dict())

        return outcome
