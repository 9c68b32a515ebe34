from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from sheetbridge.config.loader import SyncConfig
from sheetbridge.errors import TransformationError
from sheetbridge.logging.error_log import ErrorLogBuffer
from sheetbridge.models.dataset import ParsedDataset
from sheetbridge.models.source_file import SourceVariant

from .home import transform_home
from .locations import transform_locations
from .sellers import transform_sellers

"""Variant -> strategy dispatch.

Every effective SourceVariant has exactly one strategy; UNKNOWN is routed to
the Home strategy through ``SourceVariant.effective``.
"""

__all__ = ["transform_workbook", "STRATEGIES"]

logger = logging.getLogger(__name__)

Strategy = Callable[[Path, SyncConfig, ErrorLogBuffer | None, str, datetime | None], ParsedDataset]


def _home(path: Path, cfg: SyncConfig, error_log: ErrorLogBuffer | None, file_name: str, now: datetime | None) -> ParsedDataset:
    return transform_home(path, cfg.sheets.home, cfg.tz, error_log=error_log, file_name=file_name, now=now)


def _locations(path: Path, cfg: SyncConfig, error_log: ErrorLogBuffer | None, file_name: str, now: datetime | None) -> ParsedDataset:
    return transform_locations(path, cfg.sheets.locations, error_log=error_log, file_name=file_name)


def _sellers(path: Path, cfg: SyncConfig, error_log: ErrorLogBuffer | None, file_name: str, now: datetime | None) -> ParsedDataset:
    return transform_sellers(path, cfg.sheets.sellers, error_log=error_log, file_name=file_name)


STRATEGIES: dict[SourceVariant, Strategy] = {
    SourceVariant.HOME: _home,
    SourceVariant.LOCATIONS: _locations,
    SourceVariant.SELLERS: _sellers,
}


def transform_workbook(
    variant: SourceVariant,
    path: Path,
    cfg: SyncConfig,
    error_log: ErrorLogBuffer | None = None,
    file_name: str | None = None,
    now: datetime | None = None,
) -> ParsedDataset:
    """Run the strategy for ``variant`` on a local workbook.

    Raises:
        TransformationError: workbook missing, unreadable or without worksheets
    """
    if not path.exists():
        raise TransformationError(f"workbook not found: {path}", {"file": str(path)})
    effective = variant.effective
    if effective is not variant:
        logger.info("variant %s processed as %s", variant.value, effective.value)
    dataset = STRATEGIES[effective](path, cfg, error_log, file_name or path.name, now)
    logger.info("transformed %s as %s records=%d", file_name or path.name, effective.value, dataset.record_count)
    return dataset
