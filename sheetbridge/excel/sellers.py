from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

from sheetbridge.logging.error_log import ErrorLogBuffer
from sheetbridge.models.dataset import SELLER_FIELDS, SellersDataset

from .reader import is_blank, iter_non_blank_rows, read_workbook

"""Sellers variant: fixed worksheet -> seller records.

Only the known header labels below are read; every other column is ignored.
A record is kept only when its ``sellerId`` is a non-empty string.
"""

__all__ = [
    "transform_sellers",
    "HEADER_FIELDS",
    "to_number",
    "to_flag",
]

logger = logging.getLogger(__name__)

# label (trimmed, lower-cased) -> target field
HEADER_FIELDS: dict[str, str] = {
    "seller": "sellerId",
    "abierto desde": "openDate",
    "nro ventas": "sales",
    "% entregas a tiempo": "delivery",
    "calificacion estrellas": "stars",
    "link de productos": "link",
    "nuevo seller": "isNew",
}

NUMERIC_FIELDS = ("sales", "delivery", "stars")


def to_number(value: Any, strip_percent: bool = False) -> int | float:
    """Parse a numeric cell; 0 on blank or unparsable input."""
    if is_blank(value) or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if strip_percent and text.endswith("%"):
        text = text[:-1].strip()
    try:
        num = float(text)
    except ValueError:
        return 0
    if num != num or num in (float("inf"), float("-inf")):
        return 0
    return int(num) if num.is_integer() else num


def to_flag(value: Any) -> int:
    """Integer parse collapsed to exactly 0 or 1."""
    if is_blank(value) or isinstance(value, bool):
        return 1 if value is True else 0
    try:
        parsed = int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return 0
    return 1 if parsed == 1 else 0


def _text(value: Any) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _coerce(field_name: str, value: Any) -> Any:
    if field_name == "delivery":
        return to_number(value, strip_percent=True)
    if field_name in NUMERIC_FIELDS:
        return to_number(value)
    if field_name == "isNew":
        return to_flag(value)
    return _text(value)


def _select_sheet(sheet_names: list[str], wanted: str) -> str:
    if wanted in sheet_names:
        return wanted
    logger.warning("no worksheet named %s; using first worksheet %s", wanted, sheet_names[0])
    return sheet_names[0]


def transform_sellers(
    path: Path,
    sheet: str,
    error_log: ErrorLogBuffer | None = None,
    file_name: str | None = None,
) -> SellersDataset:
    """Transform a Sellers workbook into seller records."""
    file_name = file_name or path.name
    raw_sheets = read_workbook(path)
    sheet_name = _select_sheet(list(raw_sheets), sheet)
    rows = list(iter_non_blank_rows(raw_sheets[sheet_name]))
    if not rows:
        logger.warning("sheet=%s is empty", sheet_name)
        return SellersDataset(records=[])

    # column index -> field, first occurrence of a label wins
    mapping: dict[int, str] = {}
    for idx, label in enumerate(rows[0]):
        target = HEADER_FIELDS.get(str(label).strip().lower()) if not is_blank(label) else None
        if target and target not in mapping.values():
            mapping[idx] = target
    unmapped = [str(h).strip() for i, h in enumerate(rows[0]) if i not in mapping and not is_blank(h)]
    if unmapped:
        logger.debug("sheet=%s ignoring columns %s", sheet_name, unmapped)
    if "sellerId" not in mapping.values():
        logger.warning("sheet=%s has no Seller column; no records kept", sheet_name)

    records: list[dict[str, Any]] = []
    dropped = 0
    for data_index, row in enumerate(rows[1:]):
        row_number = data_index + 2
        try:
            record: dict[str, Any] = {name: _coerce(name, None) for name in SELLER_FIELDS}
            for idx, target in mapping.items():
                record[target] = _coerce(target, row[idx] if idx < len(row) else None)
        except Exception as e:
            logger.warning("sheet=%s row=%d skipped: %s", sheet_name, row_number, e)
            if error_log is not None:
                error_log.add(file_name, sheet_name, row_number, "ROW_SKIPPED", str(e))
            continue
        if not isinstance(record["sellerId"], str) or not record["sellerId"]:
            dropped += 1
            continue
        records.append(record)

    logger.info("sheet=%s sellers=%d dropped_without_id=%d", sheet_name, len(records), dropped)
    return SellersDataset(records=records)
