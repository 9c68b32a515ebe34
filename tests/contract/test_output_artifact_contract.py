from __future__ import annotations

import json
from pathlib import Path

import pytest

from sheetbridge.config.loader import load_config
from sheetbridge.context import build_context
from sheetbridge.models.execution import Trigger
from tests.fakes import FakePortal, InMemoryObjectStore


@pytest.mark.parametrize(
    "name,sheets,data_type",
    [
        ("HOME_RD_1.xlsx", {"RD": [["A"], [1]]}, dict),
        ("LOCATIONS_RD_1.xlsx", {"Locations": [["A"], ["1"]]}, list),
        ("SELLERS_RD_1.xlsx", {"Sellers": [["Seller"], ["x"]]}, list),
    ],
)
def test_artifact_envelope(write_config: Path, temp_workdir: Path, make_workbook, name, sheets, data_type):
    store = InMemoryObjectStore()
    store.put_file("Archivos_sheets/" + name, make_workbook(temp_workdir / "tmp" / name, sheets))
    cfg = load_config(write_config)
    build_context(cfg, store=store, portal=FakePortal()).pipeline.execute_cycle(Trigger.AUTO)

    envelope = json.loads(Path(cfg.paths.output_json).read_text(encoding="utf-8"))
    assert set(envelope) == {"metadata", "data"}
    assert set(envelope["metadata"]) == {"processedAt", "recordCount", "sourceFile", "version"}
    assert envelope["metadata"]["version"] == "1.0"
    assert envelope["metadata"]["sourceFile"] == name
    assert envelope["metadata"]["recordCount"] == 1
    assert isinstance(envelope["data"], data_type)
