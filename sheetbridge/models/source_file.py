from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath

"""SourceFile handle and SourceVariant enum.

A SourceFile is the remote spreadsheet picked for one cycle. It is created
from a listing, gains a ``local_path`` once downloaded, and is retired (moved
to the archive folder) by the publisher.
"""

SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")


class SourceVariant(Enum):
    """Schema family of a source spreadsheet, derived from its name prefix.

    - HOME: ``HOME_`` prefix, multi-sheet record mapping
    - LOCATIONS: ``LOCATIONS_`` prefix, verbatim string grid
    - SELLERS: ``SELLERS_`` prefix, fixed seller record shape
    - UNKNOWN: anything else; processed as HOME
    """
    HOME = "home"
    LOCATIONS = "locations"
    SELLERS = "sellers"
    UNKNOWN = "unknown"

    @property
    def effective(self) -> SourceVariant:
        """Variant used for transformation and destination lookup."""
        return SourceVariant.HOME if self is SourceVariant.UNKNOWN else self


def spreadsheet_extension(key: str) -> str | None:
    """Lower-cased spreadsheet extension of ``key``, or None."""
    suffix = PurePosixPath(key).suffix.lower()
    return suffix if suffix in SPREADSHEET_EXTENSIONS else None


@dataclass(frozen=True)
class SourceFile:
    remote_path: str            # object key inside the bucket
    last_updated: datetime      # timezone-aware
    extension: str              # .xlsx | .xls
    local_path: Path | None = None

    @property
    def name(self) -> str:
        return PurePosixPath(self.remote_path).name

    def with_local_path(self, path: Path) -> SourceFile:
        return replace(self, local_path=path)
