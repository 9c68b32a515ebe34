from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..errors import NoCandidateFilesError, StorageLifecycleError
from ..models.source_file import SPREADSHEET_EXTENSIONS, SourceFile, spreadsheet_extension
from ..storage.object_store import ObjectStore

"""Inbox listing, newest-file selection and download.

Selection: maximum ``last_updated``; equal timestamps resolve to the
lexicographically greatest key, so the choice never depends on listing order.

Sibling cleanup modes:
- ``eager``: every other candidate is deleted right after selection
- ``deferred``: siblings stay until the publisher retires the source
"""

__all__ = ["SourceLocator", "CLEANUP_MODES"]

logger = logging.getLogger(__name__)

CLEANUP_MODES = ("eager", "deferred")
WORKING_NAME = "source"


class SourceLocator:
    def __init__(self, store: ObjectStore, work_dir: Path, sibling_cleanup: str = "eager") -> None:
        if sibling_cleanup not in CLEANUP_MODES:
            raise ValueError(f"sibling_cleanup must be one of {CLEANUP_MODES}, got {sibling_cleanup!r}")
        self._store = store
        self._work_dir = work_dir
        self._sibling_cleanup = sibling_cleanup

    def list_candidates(self, prefix: str) -> list[SourceFile]:
        """Spreadsheet objects under ``prefix`` (folder placeholder excluded)."""
        candidates: list[SourceFile] = []
        for obj in self._store.list_objects(prefix):
            if obj.key == prefix or obj.key.endswith("/"):
                continue
            ext = spreadsheet_extension(obj.key)
            if ext is None:
                logger.debug("ignoring non-spreadsheet object %s", obj.key)
                continue
            candidates.append(SourceFile(remote_path=obj.key, last_updated=obj.updated, extension=ext))
        return candidates

    @staticmethod
    def select_newest(candidates: list[SourceFile]) -> SourceFile:
        return max(candidates, key=lambda c: (c.last_updated, c.remote_path))

    def working_path(self, extension: str) -> Path:
        return self._work_dir / f"{WORKING_NAME}{extension}"

    def _clear_working_copies(self) -> None:
        for ext in SPREADSHEET_EXTENSIONS:
            stale = self.working_path(ext)
            if stale.exists():
                stale.unlink()

    def _delete_siblings(self, siblings: list[SourceFile], warnings: list[dict[str, Any]] | None) -> list[str]:
        removed: list[str] = []
        for sibling in siblings:
            try:
                self._store.delete(sibling.remote_path)
                removed.append(sibling.remote_path)
                logger.info("deleted older inbox file %s", sibling.remote_path)
            except StorageLifecycleError as e:
                logger.warning("could not delete %s: %s", sibling.remote_path, e)
                if warnings is not None:
                    warnings.append(e.to_dict())
        return removed

    def locate_and_fetch(self, prefix: str, warnings: list[dict[str, Any]] | None = None) -> SourceFile:
        """Select the newest spreadsheet under ``prefix`` and download it.

        Args:
            prefix: Inbox folder (e.g. ``Archivos_sheets/``)
            warnings: Receives serialized sibling-delete failures

        Returns:
            The selected SourceFile with ``local_path`` set

        Raises:
            NoCandidateFilesError: no .xlsx/.xls object under the prefix
            StorageLifecycleError: listing or download failed
        """
        candidates = self.list_candidates(prefix)
        if not candidates:
            raise NoCandidateFilesError(
                f"no spreadsheet found under {self._store.bucket}/{prefix}", {"prefix": prefix}
            )

        selected = self.select_newest(candidates)
        siblings = [c for c in candidates if c.remote_path != selected.remote_path]
        logger.info(
            "selected %s (updated %s) of %d candidate(s)",
            selected.remote_path, selected.last_updated.isoformat(), len(candidates),
        )

        if self._sibling_cleanup == "eager" and siblings:
            self._delete_siblings(siblings, warnings)
        elif siblings:
            logger.info("keeping %d older inbox file(s) until the source is retired", len(siblings))

        self._work_dir.mkdir(parents=True, exist_ok=True)
        self._clear_working_copies()
        local = self._store.download(selected.remote_path, self.working_path(selected.extension))
        logger.info("downloaded %s -> %s", selected.remote_path, local)
        return selected.with_local_path(local)
