"""Atomic writers for comparison report outputs."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any
from uuid import uuid4

import polars as pl

from lambda_pack.report.models import ComparisonReport
from lambda_pack.report.render import render_comparison_markdown

REPORT_FORMATS: tuple[str, ...] = ("md", "json", "csv")


def _atomic_temp_path(target_path: Path) -> Path:
    return target_path.parent / f".{target_path.name}.{uuid4().hex}.tmp"


def write_json_atomically(payload: dict[str, Any], output_path: Path) -> Path:
    """Write JSON payload atomically."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = _atomic_temp_path(output_path)
    try:
        temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def write_csv_atomically(df: pl.DataFrame, output_path: Path) -> Path:
    """Write CSV dataframe atomically."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = _atomic_temp_path(output_path)
    try:
        df.write_csv(temp_path)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def write_markdown_atomically(text: str, output_path: Path) -> Path:
    """Write markdown text atomically."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = _atomic_temp_path(output_path)
    try:
        temp_path.write_text(text, encoding="utf-8")
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def report_format_for(path: Path) -> str:
    """Infer the output format from the file extension; Markdown when unknown."""

    suffix = path.suffix.lower().lstrip(".")
    if suffix in {"markdown", "md", ""}:
        return "md"
    if suffix in REPORT_FORMATS:
        return suffix
    raise ValueError(f"Unsupported report extension '.{suffix}'. Use one of: .md, .json, .csv")


def write_report(report: ComparisonReport, output_path: Path) -> Path:
    """Write the report in the format implied by `output_path`."""

    fmt = report_format_for(output_path)
    if fmt == "json":
        return write_json_atomically(report.as_dict(), output_path)
    if fmt == "csv":
        return write_csv_atomically(report.to_frame(), output_path)
    return write_markdown_atomically(render_comparison_markdown(report), output_path)
