from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd

from sheetbridge.logging.error_log import ErrorLogBuffer
from sheetbridge.models.dataset import HomeDataset

from .reader import is_blank, iter_non_blank_rows, read_workbook

"""Home variant: allow-listed worksheets -> list of records per sheet.

For each allowed worksheet the first non-blank row is the header; every
following non-blank row becomes one record keyed by normalized header names.

Cell coercion, in order:
1. blank -> None
2. header contains "inicio" or "fin" -> ``dd/mm/yyyy HH:MM:SS`` (numbers are
   spreadsheet serial days since 1899-12-30); no other rule applies
3. numeric literal string -> number
4. header contains "fecha" or "date" -> ISO-8601 if the string parses
5. other strings are trimmed; numbers, booleans and dates pass through
"""

__all__ = [
    "transform_home",
    "normalize_header",
    "coerce_cell",
    "format_schedule_value",
]

logger = logging.getLogger(__name__)

SCHEDULE_FMT = "%d/%m/%Y %H:%M:%S"
SPREADSHEET_EPOCH = datetime(1899, 12, 30)
_NUMERIC_LITERAL = re.compile(r"^\d+\.?\d*$")


def normalize_header(header: Any) -> str:
    """``" Fecha  Inicio (Lima)"`` -> ``"fecha_inicio_lima"``."""
    text = str(header).strip().lower()
    text = re.sub(r"\s+", "_", text)
    text = re.sub(r"[^\w]", "", text)
    text = re.sub(r"_{2,}", "_", text)
    return text.strip("_")


def _to_number(text: str) -> int | float:
    num = float(text)
    return int(num) if num.is_integer() else num


def _serial_to_datetime(serial: float) -> datetime:
    # day fraction -> milliseconds, rounded like the spreadsheet does
    return SPREADSHEET_EPOCH + timedelta(milliseconds=round(serial * 86_400_000))


def format_schedule_value(value: Any) -> Any:
    """Render a start/end cell as ``dd/mm/yyyy HH:MM:SS``.

    Strings that are not a date or a serial number are returned trimmed.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return _serial_to_datetime(float(value)).strftime(SCHEDULE_FMT)
    if isinstance(value, datetime):
        return value.strftime(SCHEDULE_FMT)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time()).strftime(SCHEDULE_FMT)
    text = str(value).strip()
    if _NUMERIC_LITERAL.match(text):
        return _serial_to_datetime(float(text)).strftime(SCHEDULE_FMT)
    try:
        return datetime.strptime(text, SCHEDULE_FMT).strftime(SCHEDULE_FMT)
    except ValueError:
        pass
    try:
        parsed = pd.to_datetime(text, dayfirst=True)
    except (ValueError, TypeError, OverflowError):
        return text
    if pd.isna(parsed):
        return text
    return parsed.strftime(SCHEDULE_FMT)


def _parse_date_iso(text: str) -> str | None:
    try:
        parsed = pd.to_datetime(text)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.isoformat()


def coerce_cell(value: Any, header: str) -> Any:
    """Coerce one cell according to its (raw) header text."""
    if is_blank(value):
        return None

    lowered = header.lower()
    if "inicio" in lowered or "fin" in lowered:
        return format_schedule_value(value)

    if isinstance(value, str):
        trimmed = value.strip()
        if _NUMERIC_LITERAL.match(trimmed):
            return _to_number(trimmed)
        if "fecha" in lowered or "date" in lowered:
            iso = _parse_date_iso(trimmed)
            if iso is not None:
                return iso
        return trimmed

    if isinstance(value, datetime) and ("fecha" in lowered or "date" in lowered):
        return value.isoformat()

    return value


def _process_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    processed_at: str,
    error_log: ErrorLogBuffer | None,
    file_name: str,
) -> list[dict[str, Any]]:
    rows = list(iter_non_blank_rows(df))
    if len(rows) < 2:
        logger.warning("sheet=%s has no data rows (needs a header and at least one row)", sheet_name)
        return []

    headers = rows[0]
    columns = [
        (idx, str(h).strip(), normalize_header(h))
        for idx, h in enumerate(headers)
        if not is_blank(h) and normalize_header(h)
    ]
    logger.debug("sheet=%s headers=%s", sheet_name, [c[1] for c in columns])

    records: list[dict[str, Any]] = []
    for data_index, row in enumerate(rows[1:]):
        row_number = data_index + 2  # header row + 1-based numbering
        try:
            record: dict[str, Any] = {
                "_metadata": {
                    "sourceSheet": sheet_name,
                    "sourceRow": row_number,
                    "processedAt": processed_at,
                }
            }
            for idx, raw_header, key in columns:
                cell = row[idx] if idx < len(row) else None
                record[key] = coerce_cell(cell, raw_header)
            records.append(record)
        except Exception as e:
            logger.warning("sheet=%s row=%d skipped: %s", sheet_name, row_number, e)
            if error_log is not None:
                error_log.add(file_name, sheet_name, row_number, "ROW_SKIPPED", str(e))

    logger.info("sheet=%s records=%d of rows=%d", sheet_name, len(records), len(rows) - 1)
    return records


def transform_home(
    path: Path,
    allowed_sheets: Iterable[str],
    tz: ZoneInfo,
    error_log: ErrorLogBuffer | None = None,
    file_name: str | None = None,
    now: datetime | None = None,
) -> HomeDataset:
    """Transform a Home workbook.

    Args:
        path: Local workbook path
        allowed_sheets: Worksheet names to process (others are skipped)
        tz: Reference time zone for the ``processedAt`` provenance stamp
        error_log: Buffer receiving skipped rows/sheets
        file_name: Source name used in error records (defaults to path name)
        now: Processing time (defaults to current time)

    Returns:
        HomeDataset with one entry per allowed worksheet present in the workbook
    """
    file_name = file_name or path.name
    allowed = list(allowed_sheets)
    processed_at = (now or datetime.now(UTC)).astimezone(tz).isoformat()

    raw_sheets = read_workbook(path)
    logger.info("workbook=%s sheets=%s", file_name, list(raw_sheets))

    sheets: dict[str, list[dict[str, Any]]] = {}
    for sheet_name, df in raw_sheets.items():
        if sheet_name not in allowed:
            logger.info("skipping sheet not in allow-list: %s", sheet_name)
            continue
        try:
            sheets[sheet_name] = _process_sheet(df, sheet_name, processed_at, error_log, file_name)
        except Exception as e:
            logger.error("sheet=%s failed: %s", sheet_name, e)
            if error_log is not None:
                error_log.add(file_name, sheet_name, -1, "SHEET_SKIPPED", str(e))
            sheets[sheet_name] = []

    if not sheets:
        logger.warning("workbook=%s has none of the allowed sheets %s", file_name, allowed)
    return HomeDataset(sheets=sheets)
