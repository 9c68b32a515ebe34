from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from sheetbridge.logging.error_log import ErrorLogBuffer
from sheetbridge.models.dataset import LocationsDataset

from .reader import is_blank, read_workbook

"""Locations variant: one worksheet -> verbatim string grid.

No type coercion: cells are rendered to text without reinterpretation, so a
code like ``"0123"`` survives unchanged. Row 0 of the output is the header row
(trimmed, original case).
"""

__all__ = [
    "transform_locations",
    "cell_text",
    "trim_trailing_empty",
]

logger = logging.getLogger(__name__)


def cell_text(value: Any) -> str:
    """String form of a cell: TRUE/FALSE for booleans, "" for blanks."""
    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def trim_trailing_empty(row: list[str]) -> list[str]:
    """Drop empty strings from the end of the row only."""
    end = len(row)
    while end > 0 and row[end - 1] == "":
        end -= 1
    return row[:end]


def _select_sheet(sheet_names: list[str], allowed: list[str]) -> str:
    for name in sheet_names:
        if name in allowed:
            return name
    logger.warning("no worksheet named %s; using first worksheet %s", allowed, sheet_names[0])
    return sheet_names[0]


def transform_locations(
    path: Path,
    allowed_sheets: Iterable[str],
    error_log: ErrorLogBuffer | None = None,
    file_name: str | None = None,
) -> LocationsDataset:
    """Transform a Locations workbook into a header + data string grid."""
    file_name = file_name or path.name
    raw_sheets = read_workbook(path)
    sheet_name = _select_sheet(list(raw_sheets), list(allowed_sheets))
    df = raw_sheets[sheet_name]

    rows: list[list[str]] = []
    header_seen = False
    for row_number, raw in enumerate(df.itertuples(index=False, name=None), start=1):
        try:
            cells = [cell_text(c) for c in raw]
        except Exception as e:
            logger.warning("sheet=%s row=%d skipped: %s", sheet_name, row_number, e)
            if error_log is not None:
                error_log.add(file_name, sheet_name, row_number, "ROW_SKIPPED", str(e))
            continue
        if all(c.strip() == "" for c in cells):
            continue
        if not header_seen:
            cells = [c.strip() for c in cells]
            header_seen = True
        rows.append(trim_trailing_empty(cells))

    if not rows:
        logger.warning("sheet=%s is empty", sheet_name)
    logger.info("sheet=%s locations rows=%d", sheet_name, max(len(rows) - 1, 0))
    return LocationsDataset(rows=rows)
