"""Command line interface (``python -m sheetbridge.cli``)."""
