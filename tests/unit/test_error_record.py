from __future__ import annotations
import json

import pytest

from sheetbridge.models.error_record import FILE_LEVEL, ErrorRecord


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(file="SELLERS_Q1.xls", sheet="Sellers", row=10,
                             error_type="ROW_SKIPPED", message="bad value")
    data = json.loads(rec.to_json_line())
    assert data["file"] == "SELLERS_Q1.xls"
    assert data["row"] == 10
    assert data["error_type"] == "ROW_SKIPPED"
    assert data["timestamp"].endswith("Z")


def test_error_record_non_ascii_kept():
    rec = ErrorRecord.create("HOME.xlsx", FILE_LEVEL, -1, "TRANSFORMATION_ERROR", "Calificación inválida")
    assert "Calificación inválida" in rec.to_json_line()


def test_error_record_is_frozen():
    rec = ErrorRecord.create("a", "b", 1, "X", "m")
    with pytest.raises(Exception):
        rec.row = 2  # type: ignore[misc]
