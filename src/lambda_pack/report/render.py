"""Markdown rendering for comparison reports."""

from __future__ import annotations

from lambda_pack.report.models import ComparisonReport, ReportRow
from lambda_pack.utils.units import format_bytes

TABLE_COLUMNS: tuple[str, ...] = (
    "strategy",
    "size",
    "size_bytes",
    "files",
    "zipped",
    "bucket",
    "predicted_cold_start_ms",
    "build_duration_ms",
)


def _cell(value: object) -> str:
    if value is None:
        return "-"
    return str(value).replace("|", "\\|").replace("\n", " ")


def _table_line(row: ReportRow) -> str:
    if row.failed:
        reason = "timed out" if row.timed_out else f"{row.error_type}: {row.error}"
        cells = [row.strategy_id, "-", "-", "-", "-", f"{row.bucket} ({reason})", "-", row.duration_ms]
    else:
        cells = [
            row.strategy_id,
            row.size_human,
            row.measured_size_bytes,
            row.file_count,
            format_bytes(row.zipped_size_bytes) if row.zipped_size_bytes is not None else None,
            row.bucket,
            row.predicted_cold_start_ms,
            row.duration_ms,
        ]
    return "| " + " | ".join(_cell(cell) for cell in cells) + " |"


def render_comparison_markdown(report: ComparisonReport) -> str:
    """Render a comparison report as a Markdown document."""

    lines: list[str] = []
    title = report.project_name or "project"
    lines.append(f"# Lambda Packaging Comparison ({title})")
    lines.append("")
    lines.append("## Run Metadata")
    lines.append(f"- entry_point: `{report.entry_point}`")
    lines.append(f"- generated_at: {report.generated_at.isoformat()}")
    lines.append(f"- strategies: {len(report.rows)}")
    lines.append(f"- failed: {report.failed_count}")
    lines.append("")
    lines.append("## Strategies")
    lines.append("| " + " | ".join(TABLE_COLUMNS) + " |")
    lines.append("|" + "|".join("---" for _ in TABLE_COLUMNS) + "|")
    for row in report.rows:
        lines.append(_table_line(row))
    lines.append("")

    over_limit = [row.strategy_id for row in report.rows if row.exceeds_lambda_limit]
    if over_limit:
        lines.append("## Warnings")
        lines.append(f"- exceeds Lambda unzipped package limit: {', '.join(over_limit)}")
        lines.append("")
    return "\n".join(lines)
