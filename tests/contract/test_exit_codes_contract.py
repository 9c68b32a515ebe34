from __future__ import annotations

from sheetbridge.cli.__main__ import EXIT_FATAL, EXIT_SUCCESS, EXIT_WARNINGS


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_WARNINGS, EXIT_FATAL) == (0, 2, 1)
