from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from sheetbridge.cli.__main__ import EXIT_FATAL, EXIT_SUCCESS, EXIT_WARNINGS, main
from sheetbridge.context import build_context
from sheetbridge.errors import DownstreamPublishError
from tests.fakes import FakePortal, InMemoryObjectStore

INBOX = "Archivos_sheets/"


def _patched_context(store, portal):
    return patch(
        "sheetbridge.cli.__main__.build_context",
        side_effect=lambda cfg: build_context(cfg, store=store, portal=portal),
    )


def test_config_error_exits_fatal(temp_workdir: Path):
    assert main(["--config", str(temp_workdir / "config" / "missing.yml"), "run"]) == EXIT_FATAL


def test_run_success(write_config: Path, temp_workdir: Path, make_workbook):
    store = InMemoryObjectStore()
    store.put_file(INBOX + "HOME_RD_1.xlsx", make_workbook(temp_workdir / "tmp" / "h.xlsx", {"RD": [["A"], [1]]}))
    with _patched_context(store, FakePortal()):
        assert main(["--config", str(write_config), "run"]) == EXIT_SUCCESS


def test_run_with_warnings(write_config: Path, temp_workdir: Path, make_workbook):
    store = InMemoryObjectStore()
    store.put_file(INBOX + "HOME_RD_1.xlsx", make_workbook(temp_workdir / "tmp" / "h.xlsx", {"RD": [["A"], [1]]}))
    portal = FakePortal(DownstreamPublishError("portal responded 500", 500))
    with _patched_context(store, portal):
        assert main(["--config", str(write_config), "run"]) == EXIT_WARNINGS


def test_run_failed_cycle(write_config: Path):
    with _patched_context(InMemoryObjectStore(), FakePortal()):
        assert main(["--config", str(write_config), "run"]) == EXIT_FATAL


def test_debug_flag(write_config: Path):
    with _patched_context(InMemoryObjectStore(), FakePortal()):
        main(["--config", str(write_config), "--debug", "run"])
    assert logging.getLogger("sheetbridge").level == logging.DEBUG


def test_config_log_level_survives_run(write_config: Path):
    write_config.write_text(write_config.read_text(encoding="utf-8") + "log_level: WARNING\n", encoding="utf-8")
    with _patched_context(InMemoryObjectStore(), FakePortal()):
        main(["--config", str(write_config), "run"])
    assert logging.getLogger("sheetbridge").level == logging.WARNING


def test_inspect_prints_sample(write_config: Path, temp_workdir: Path, make_workbook, capsys):
    wb = make_workbook(temp_workdir / "data" / "SELLERS_RD_1.xlsx", {"Sellers": [["Seller"], ["Uno"], ["Dos"]]})
    assert main(["--config", str(write_config), "inspect", str(wb), "--limit", "1"]) == EXIT_SUCCESS
    out = capsys.readouterr().out
    assert "variant=sellers" in out
    assert "environment=RD" in out
    assert '"sellerId": "Uno"' in out
    assert "Dos" not in out


def test_inspect_missing_file(write_config: Path, temp_workdir: Path):
    assert main(["--config", str(write_config), "inspect", str(temp_workdir / "nope.xlsx")]) == EXIT_FATAL


def test_command_required(write_config: Path):
    with pytest.raises(SystemExit):
        main(["--config", str(write_config)])


def test_check_succeeds(write_config: Path):
    store = InMemoryObjectStore()
    store.put(INBOX + "HOME_RD_1.xlsx", b"x")
    with _patched_context(store, FakePortal()):
        assert main(["--config", str(write_config), "check"]) == EXIT_SUCCESS
    assert ("list", INBOX) in store.calls


def test_check_reports_portal_rejection(write_config: Path):
    portal = FakePortal(DownstreamPublishError("portal responded 401", 401))
    with _patched_context(InMemoryObjectStore(), portal):
        assert main(["--config", str(write_config), "check"]) == EXIT_FATAL
    assert portal.calls == []


def test_check_reports_storage_failure(write_config: Path):
    store = InMemoryObjectStore()
    store.fail["list"] = {"*"}
    with _patched_context(store, FakePortal()):
        assert main(["--config", str(write_config), "check"]) == EXIT_FATAL
