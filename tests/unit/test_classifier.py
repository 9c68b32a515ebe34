from __future__ import annotations

import pytest

from sheetbridge.models.source_file import SourceVariant
from sheetbridge.services.classifier import classify, environment_tag


@pytest.mark.parametrize(
    "name,expected",
    [
        ("HOME_2025.xlsx", SourceVariant.HOME),
        ("LOCATIONS_RD.xlsx", SourceVariant.LOCATIONS),
        ("SELLERS_Q1.xls", SourceVariant.SELLERS),
        ("misc.xlsx", SourceVariant.UNKNOWN),
        ("home_rd_20250101.XLSX", SourceVariant.HOME),
        ("Archivos_sheets/LOCATIONS_PRD_1.xlsx", SourceVariant.LOCATIONS),
        ("HOMEPAGE.xlsx", SourceVariant.UNKNOWN),
        ("", SourceVariant.UNKNOWN),
    ],
)
def test_classify(name, expected):
    assert classify(name) is expected


def test_unknown_is_processed_as_home():
    assert classify("misc.xlsx").effective is SourceVariant.HOME
    assert classify("SELLERS_x.xlsx").effective is SourceVariant.SELLERS


def test_classify_uses_basename_only():
    assert classify("HOME_/misc.xlsx") is SourceVariant.UNKNOWN


@pytest.mark.parametrize(
    "name,tag",
    [
        ("HOME_RD_20250101.xlsx", "RD"),
        ("home_prd_x.xlsx", "PRD"),
        ("LOCATIONS_PRD.xlsx", "PRD"),
        ("SELLERS_.xlsx", None),
        ("misc_RD.xlsx", None),
    ],
)
def test_environment_tag(name, tag):
    assert environment_tag(name) == tag
