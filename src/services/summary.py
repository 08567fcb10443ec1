from __future__ import annotations

from ..models.ingestion_result import IngestionResult

"""SUMMARY line rendering for one upload.

Format:
SUMMARY file=<name> rows=<seen> accepted=<n> rejected=<n> total_omzet=<x> elapsed_sec=<s>
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        # avoid scientific notation for tiny values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}".rstrip("0").rstrip(".")


def render_summary_line(file_name: str, result: IngestionResult | None, elapsed_seconds: float) -> str:
    """Render the SUMMARY line. ``result`` is None when the upload failed before normalization.

    Examples:
        >>> from src.models.ingestion_result import IngestionResult
        >>> render_summary_line("w1.csv", IngestionResult([], 3, 0.0), 0.5)
        'SUMMARY file=w1.csv rows=3 accepted=0 rejected=3 total_omzet=0 elapsed_sec=0.5'
    """
    rows = result.total_rows_seen if result else 0
    accepted = result.record_count if result else 0
    rejected = result.rejected_count if result else 0
    total_omzet = result.total_omzet if result else 0.0
    return (
        f"SUMMARY file={file_name} "
        f"rows={rows} "
        f"accepted={accepted} "
        f"rejected={rejected} "
        f"total_omzet={_format_number(total_omzet)} "
        f"elapsed_sec={_format_number(elapsed_seconds)}"
    )
