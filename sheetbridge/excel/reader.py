from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import pandas as pd

from sheetbridge.errors import TransformationError

"""Workbook reader.

Worksheets are read header-less into raw DataFrames with ``dtype=object`` and
pandas' NA-string conversion disabled, so every cell reaches the variant
strategies exactly as stored in the workbook:

- text stays text (``"0123"``, ``"NA"`` are not reinterpreted)
- numbers arrive as int/float, booleans as bool, dates as datetime
- empty cells arrive as ``""`` (or NaN for some .xls files)

Header detection, row filtering and value coercion belong to the strategies.
"""

__all__ = [
    "read_workbook",
    "is_blank",
    "iter_non_blank_rows",
]


def read_workbook(path: Path, target_sheets: Iterable[str] | None = None) -> dict[str, pd.DataFrame]:
    """Read a workbook returning raw DataFrames keyed by sheet name, in workbook order.

    Parameters
    ----------
    path: .xlsx / .xls file path (engine detected from file content)
    target_sheets: restrict to these sheet names (None reads all sheets)

    Raises
    ------
    TransformationError: the file cannot be opened as a workbook or has no
        worksheets at all.
    """
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:  # zipfile / xlrd / engine errors all mean "not a workbook"
        raise TransformationError(
            f"cannot open workbook {path.name}: {e}", {"file": path.name}
        ) from e

    with xls:
        sheet_names = [str(name) for name in xls.sheet_names]
        if not sheet_names:
            raise TransformationError(f"workbook {path.name} contains no worksheets", {"file": path.name})

        wanted = set(target_sheets) if target_sheets is not None else None
        dfs: dict[str, pd.DataFrame] = {}
        for name in sheet_names:
            if wanted is not None and name not in wanted:
                continue
            dfs[name] = xls.parse(
                name,
                header=None,
                dtype=object,
                keep_default_na=False,
                na_values=[],
            )
    return dfs


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def iter_non_blank_rows(df: pd.DataFrame) -> Iterator[list[Any]]:
    """Yield each row as a list of cells, skipping rows with no non-blank cell."""
    for raw in df.itertuples(index=False, name=None):
        cells = list(raw)
        if all(is_blank(c) for c in cells):
            continue
        yield cells
