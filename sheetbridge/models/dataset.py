from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from .source_file import SourceVariant

"""Parsed dataset models, one per effective SourceVariant.

``to_json_data()`` returns the value placed under ``data`` in the output
artifact; ``record_count`` is what the execution reports as processed.
"""

__all__ = [
    "HomeDataset",
    "LocationsDataset",
    "SellersDataset",
    "ParsedDataset",
    "SELLER_FIELDS",
]

SELLER_FIELDS = ("sellerId", "openDate", "sales", "delivery", "stars", "link", "isNew")


@dataclass(frozen=True)
class HomeDataset:
    """Worksheet name -> records, in workbook order."""
    variant: ClassVar[SourceVariant] = SourceVariant.HOME
    sheets: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    @property
    def record_count(self) -> int:
        return sum(len(records) for records in self.sheets.values())

    def to_json_data(self) -> dict[str, list[dict[str, Any]]]:
        return self.sheets


@dataclass(frozen=True)
class LocationsDataset:
    """String grid; ``rows[0]`` is the header row."""
    variant: ClassVar[SourceVariant] = SourceVariant.LOCATIONS
    rows: list[list[str]] = field(default_factory=list)

    @property
    def header(self) -> list[str]:
        return self.rows[0] if self.rows else []

    @property
    def record_count(self) -> int:
        return max(len(self.rows) - 1, 0)

    def to_json_data(self) -> list[list[str]]:
        return self.rows


@dataclass(frozen=True)
class SellersDataset:
    """Seller records restricted to SELLER_FIELDS."""
    variant: ClassVar[SourceVariant] = SourceVariant.SELLERS
    records: list[dict[str, Any]] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.records)

    def to_json_data(self) -> list[dict[str, Any]]:
        return self.records


ParsedDataset = Union[HomeDataset, LocationsDataset, SellersDataset]
