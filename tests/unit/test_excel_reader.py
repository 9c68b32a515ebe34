from __future__ import annotations

import math
from pathlib import Path

import pandas as pd
import pytest

from sheetbridge.errors import TransformationError
from sheetbridge.excel.reader import is_blank, iter_non_blank_rows, read_workbook


def test_read_workbook_keeps_order_and_raw_values(temp_workdir: Path, make_workbook):
    path = make_workbook(temp_workdir / "wb.xlsx", {
        "B": [["code", "label"], ["0123", "NA"]],
        "A": [["x"], [1]],
    })
    sheets = read_workbook(path)
    assert list(sheets) == ["B", "A"]
    rows = list(iter_non_blank_rows(sheets["B"]))
    assert rows[1] == ["0123", "NA"]


def test_read_workbook_target_sheets(temp_workdir: Path, make_workbook):
    path = make_workbook(temp_workdir / "wb.xlsx", {"A": [["x"]], "B": [["y"]]})
    assert list(read_workbook(path, target_sheets=["B"])) == ["B"]


def test_read_workbook_not_a_workbook(temp_workdir: Path):
    bogus = temp_workdir / "data" / "bogus.xlsx"
    bogus.write_bytes(b"not a zip")
    with pytest.raises(TransformationError) as e:
        read_workbook(bogus)
    assert e.value.error_type == "TRANSFORMATION_ERROR"


@pytest.mark.parametrize("value", [None, float("nan"), pd.NaT, "", "   "])
def test_is_blank_true(value):
    assert is_blank(value)


@pytest.mark.parametrize("value", [0, "0", False, "x", math.inf])
def test_is_blank_false(value):
    assert not is_blank(value)


def test_iter_non_blank_rows_skips_empty():
    df = pd.DataFrame([["a", "b"], ["", None], ["c", ""]], dtype=object)
    assert list(iter_non_blank_rows(df)) == [["a", "b"], ["c", ""]]
