# Shared pytest fixtures
from __future__ import annotations
import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from sheetbridge.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("VTEX_APP_KEY", "VTEX_APP_TOKEN", "VTEX_ACCOUNT", "SHEETBRIDGE_BUCKET", "STORAGE_ENDPOINT_URL"):
        monkeypatch.delenv(name, raising=False)
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """storage:
  bucket: test-bucket
  inbox_prefix: Archivos_sheets/
  archive_prefix: Publicaciones_json_vtex/
portal:
  default_account: promartrd
  default_site: promartrd
  timeout_seconds: 5
  environments:
    RD:
      account: promartrd
    PRD:
      account: promart
      site: promart
schedule:
  interval_minutes: 10
paths:
  work_dir: ./data/input
  output_json: ./data/output.json
  logs_dir: ./logs
timezone: America/Lima
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sheetbridge.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook() -> Callable[[Path, dict[str, list[list]]], Path]:
    """Write ``{sheet: rows}`` as an .xlsx without header/index handling."""
    def _make(path: Path, sheets: dict[str, list[list]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for name, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)
        return path
    return _make
