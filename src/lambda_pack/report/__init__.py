"""Comparison report construction, rendering, and persistence."""

from lambda_pack.report.builder import ReportBuilder, classify_size, predict_cold_start_ms
from lambda_pack.report.models import (
    BUCKET_AS_EXPECTED,
    BUCKET_BETTER,
    BUCKET_FAILED,
    BUCKET_WORSE,
    ComparisonReport,
    ReportRow,
    StrategyOutcome,
)
from lambda_pack.report.render import render_comparison_markdown
from lambda_pack.report.writer import report_format_for, write_report

__all__ = [
    "BUCKET_AS_EXPECTED",
    "BUCKET_BETTER",
    "BUCKET_FAILED",
    "BUCKET_WORSE",
    "ComparisonReport",
    "ReportBuilder",
    "ReportRow",
    "StrategyOutcome",
    "classify_size",
    "predict_cold_start_ms",
    "render_comparison_markdown",
    "report_format_for",
    "write_report",
]
