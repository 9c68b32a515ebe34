from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from sheetbridge.excel.home import coerce_cell, format_schedule_value, normalize_header, transform_home
from sheetbridge.logging.error_log import ErrorLogBuffer

LIMA = ZoneInfo("America/Lima")
NOW = datetime(2025, 1, 1, 15, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (" Fecha  Inicio ", "fecha_inicio"),
        ("SKU (ID)", "sku_id"),
        ("__a__b__", "a_b"),
        ("Precio-Final", "preciofinal"),
    ],
)
def test_normalize_header(raw, expected):
    assert normalize_header(raw) == expected


def test_schedule_value_from_serial():
    assert format_schedule_value(45658.5) == "01/01/2025 12:00:00"
    assert format_schedule_value("45658") == "01/01/2025 00:00:00"


def test_schedule_value_from_datetime_and_text():
    assert format_schedule_value(datetime(2025, 3, 4, 5, 6, 7)) == "04/03/2025 05:06:07"
    assert format_schedule_value("04/03/2025 05:06:07") == "04/03/2025 05:06:07"
    assert format_schedule_value("  pronto ") == "pronto"


def test_coerce_rules_in_order():
    assert coerce_cell("", "Nombre") is None
    assert coerce_cell(None, "Nombre") is None
    assert coerce_cell(" 42 ", "Cantidad") == 42
    assert coerce_cell("3.5", "Precio") == 3.5
    assert coerce_cell("  texto  ", "Nombre") == "texto"
    assert coerce_cell(7, "Orden") == 7
    assert coerce_cell(True, "Activo") is True
    # schedule rule wins over the numeric literal rule
    assert coerce_cell("45658", "Fecha Inicio") == "01/01/2025 00:00:00"


def test_coerce_date_header():
    assert coerce_cell("2025-01-02", "Fecha publicacion") == "2025-01-02T00:00:00"
    assert coerce_cell("not a date", "Update date") == "not a date"


def test_transform_home_allow_list_and_metadata(temp_workdir: Path, make_workbook):
    path = make_workbook(temp_workdir / "HOME_RD.xlsx", {
        "Notes": [["ignored"], ["x"]],
        "PROD": [
            ["SKU", "Nombre", "Fin"],
            ["0001", " Taladro ", 45658],
            [None, None, None],
            ["0002", "Sierra", None],
        ],
    })
    log = ErrorLogBuffer(temp_workdir / "logs")
    ds = transform_home(path, ["PROD", "RD"], LIMA, error_log=log, now=NOW)
    assert list(ds.sheets) == ["PROD"]
    records = ds.sheets["PROD"]
    assert len(records) == 2
    first = records[0]
    assert first["sku"] == 1
    assert first["nombre"] == "Taladro"
    assert first["fin"] == "01/01/2025 00:00:00"
    assert first["_metadata"] == {
        "sourceSheet": "PROD",
        "sourceRow": 2,
        "processedAt": "2025-01-01T10:00:00-05:00",
    }
    assert records[1]["_metadata"]["sourceRow"] == 3
    assert records[1]["fin"] is None
    assert ds.record_count == 2
    assert len(log) == 0


def test_transform_home_header_only_sheet(temp_workdir: Path, make_workbook):
    path = make_workbook(temp_workdir / "h.xlsx", {"RD": [["SKU", "Nombre"]]})
    ds = transform_home(path, ["RD"], LIMA, now=NOW)
    assert ds.sheets == {"RD": []}


def test_transform_home_no_allowed_sheet(temp_workdir: Path, make_workbook):
    path = make_workbook(temp_workdir / "h.xlsx", {"Other": [["a"], [1]]})
    assert transform_home(path, ["RD"], LIMA, now=NOW).sheets == {}


def test_transform_home_blank_header_skipped(temp_workdir: Path, make_workbook):
    path = make_workbook(temp_workdir / "h.xlsx", {"RD": [["SKU", None, "Nombre"], ["1", "x", "y"]]})
    record = transform_home(path, ["RD"], LIMA, now=NOW).sheets["RD"][0]
    assert set(record) == {"_metadata", "sku", "nombre"}
