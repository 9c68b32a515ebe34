from __future__ import annotations

from pathlib import PurePosixPath

from ..models.source_file import SourceVariant

"""File name -> SourceVariant classification.

Pure and total: every name maps to exactly one variant. The upper-cased
basename is checked against the prefixes in fixed priority order.
"""

__all__ = ["classify", "environment_tag", "PREFIXES"]

PREFIXES: tuple[tuple[str, SourceVariant], ...] = (
    ("HOME_", SourceVariant.HOME),
    ("LOCATIONS_", SourceVariant.LOCATIONS),
    ("SELLERS_", SourceVariant.SELLERS),
)


def _basename(file_name: str) -> str:
    return PurePosixPath(file_name.replace("\\", "/")).name.upper()


def classify(file_name: str) -> SourceVariant:
    name = _basename(file_name)
    for prefix, variant in PREFIXES:
        if name.startswith(prefix):
            return variant
    return SourceVariant.UNKNOWN


def environment_tag(file_name: str) -> str | None:
    """Token after the variant prefix: ``HOME_RD_2025.xlsx`` -> ``"RD"``.

    Returns None for UNKNOWN names or when nothing follows the prefix.
    """
    name = _basename(file_name)
    for prefix, _ in PREFIXES:
        if name.startswith(prefix):
            token = name[len(prefix):].split("_", 1)[0].split(".", 1)[0]
            return token or None
    return None
