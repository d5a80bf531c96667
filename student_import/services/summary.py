from __future__ import annotations

from ..models.import_result import ImportResult

"""Summary rendering for an import run.

``render_summary_line`` produces the machine-readable SUMMARY line printed by
the CLI; ``get_import_summary`` the short human-readable report.
"""

__all__ = [
    "format_seconds",
    "get_import_summary",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Integer when whole, otherwise plain decimal (never scientific notation)."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(result: ImportResult, invalid_rows: int = 0, elapsed_seconds: float = 0.0) -> str:
    """Format: SUMMARY attempted=N success=N duplicates=N errors=N invalid_rows=N elapsed_sec=X

    Examples:
        >>> r = ImportResult(total_attempted=3, success_count=2, duplicate_count=1, error_count=0)
        >>> render_summary_line(r, invalid_rows=1, elapsed_seconds=2.0)
        'SUMMARY attempted=3 success=2 duplicates=1 errors=0 invalid_rows=1 elapsed_sec=2'
    """
    line = (
        f"SUMMARY attempted={result.total_attempted} "
        f"success={result.success_count} "
        f"duplicates={result.duplicate_count} "
        f"errors={result.error_count} "
        f"invalid_rows={invalid_rows} "
        f"elapsed_sec={format_seconds(elapsed_seconds)}"
    )
    if result.cancelled:
        line += " cancelled=1"
    return line


def get_import_summary(result: ImportResult) -> str:
    lines: list[str] = []
    if result.success_count > 0:
        lines.append(f"Successfully imported: {result.success_count} students")
    if result.duplicate_count > 0:
        lines.append(f"Skipped (duplicates): {result.duplicate_count} students")
    if result.error_count > 0:
        lines.append(f"Failed: {result.error_count} students")
    if not lines:
        lines.append("No students were imported.")
    return "\n".join(lines)
