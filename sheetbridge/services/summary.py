from __future__ import annotations

from ..models.processing_result import CycleResult

"""SUMMARY line rendering for one cycle.

The body is logged through ``log_summary``; the formatter adds the label:
SUMMARY execution={id} trigger={auto|manual} status={status} variant={variant|-}
file={name|-} records={n} warnings={n} elapsed_sec={elapsed}
"""

__all__ = ["render_summary_line", "format_elapsed"]


def format_elapsed(seconds: float) -> str:
    """Render seconds without scientific notation or a trailing ``.0``."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def render_summary_line(result: CycleResult) -> str:
    """Render the SUMMARY body for a finished cycle.

    Examples:
        >>> render_summary_line(result)  # doctest: +SKIP
        'execution=exec_1735689600000_a1b2c3 trigger=manual status=completed variant=home ...'
    """
    ex = result.execution
    elapsed = (ex.duration_ms or 0) / 1000
    return (
        f"execution={ex.id} "
        f"trigger={ex.trigger.value} "
        f"status={ex.status.value} "
        f"variant={ex.variant or '-'} "
        f"file={ex.source_file or '-'} "
        f"records={ex.records_processed} "
        f"warnings={len(ex.warnings)} "
        f"elapsed_sec={format_elapsed(elapsed)}"
    )
