from __future__ import annotations

from pathlib import Path

from sheetbridge.config.loader import load_config
from sheetbridge.context import build_context
from sheetbridge.models.execution import Trigger
from tests.fakes import FakePortal, InMemoryObjectStore

INBOX = "Archivos_sheets/"


def test_newest_file_wins_and_older_ones_are_consumed(write_config: Path, temp_workdir: Path, make_workbook):
    store = InMemoryObjectStore()
    old = make_workbook(temp_workdir / "tmp" / "old.xlsx", {"RD": [["A"], ["old"]]})
    new = make_workbook(temp_workdir / "tmp" / "new.xlsx", {"Sellers": [["Seller"], ["Nuevo"]]})
    store.put_file(INBOX + "HOME_RD_old.xlsx", old, minutes=0)
    store.put_file(INBOX + "SELLERS_RD_new.xlsx", new, minutes=5)

    portal = FakePortal()
    ctx = build_context(load_config(write_config), store=store, portal=portal)
    result = ctx.pipeline.execute_cycle(Trigger.AUTO)

    assert result.execution.source_file == "SELLERS_RD_new.xlsx"
    assert result.dataset.records == [
        {"sellerId": "Nuevo", "openDate": "", "sales": 0, "delivery": 0, "stars": 0, "link": "", "isNew": 0}
    ]
    assert store.keys(INBOX) == []
    assert [d.file_name for d, _ in portal.calls] == ["sellers.json"]


def test_deferred_cleanup_removes_siblings_after_publish(write_config: Path, temp_workdir: Path, make_workbook):
    text = write_config.read_text(encoding="utf-8").replace(
        "  archive_prefix: Publicaciones_json_vtex/\n",
        "  archive_prefix: Publicaciones_json_vtex/\n  sibling_cleanup: deferred\n",
    )
    write_config.write_text(text, encoding="utf-8")
    store = InMemoryObjectStore()
    wb = make_workbook(temp_workdir / "tmp" / "h.xlsx", {"RD": [["A"], [1]]})
    store.put_file(INBOX + "HOME_RD_a.xlsx", wb, minutes=0)
    store.put_file(INBOX + "HOME_RD_b.xlsx", wb, minutes=1)

    ctx = build_context(load_config(write_config), store=store, portal=FakePortal())
    result = ctx.pipeline.execute_cycle(Trigger.AUTO)
    assert result.outcome.removed_keys == [INBOX + "HOME_RD_a.xlsx"]
    assert store.keys(INBOX) == []
