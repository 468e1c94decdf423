from __future__ import annotations

from ..models.processing_result import BatchResult

"""Summary line rendering.

Format:
    SUMMARY rows={total} ok={ok} skipped={skipped} errors={errors} elapsed_sec={elapsed}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: BatchResult) -> str:
    """Render the SUMMARY line for a finished batch.

    Examples:
        >>> render_summary_line(BatchResult(total=3, ok=1, skipped=1, errors=1, elapsed_seconds=8.0))
        'SUMMARY rows=3 ok=1 skipped=1 errors=1 elapsed_sec=8'
    """
    return (
        f"SUMMARY rows={result.total} "
        f"ok={result.ok} "
        f"skipped={result.skipped} "
        f"errors={result.errors} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)}"
    )
