"""sheetbridge: spreadsheet inbox -> JSON -> commerce portal sync service."""

__version__ = "1.0.0"
