"""Tests for report building, rendering, and writing."""

import csv
import json
import tempfile
import unittest
from pathlib import Path

from lambda_pack.artifacts import BuildArtifact
from lambda_pack.errors import BuildFailureError
from lambda_pack.report import (
    BUCKET_AS_EXPECTED,
    BUCKET_BETTER,
    BUCKET_FAILED,
    BUCKET_WORSE,
    ReportBuilder,
    StrategyOutcome,
    classify_size,
    predict_cold_start_ms,
    render_comparison_markdown,
    report_format_for,
    write_report,
)
from lambda_pack.strategies import build_default_catalog

MIB = 1024 * 1024


def _measured(strategy_id, size_bytes, file_count=1, duration_ms=10):
    return BuildArtifact(
        strategy_id=strategy_id,
        output_path=Path("/tmp") / strategy_id,
        duration_ms=duration_ms,
        size_bytes=size_bytes,
        file_count=file_count,
        exceeds_lambda_limit=False,
    )


class TestClassification(unittest.TestCase):
    def test_bands(self):
        self.assertEqual(classify_size(99, (100, 200)), BUCKET_BETTER)
        self.assertEqual(classify_size(100, (100, 200)), BUCKET_AS_EXPECTED)
        self.assertEqual(classify_size(200, (100, 200)), BUCKET_AS_EXPECTED)
        self.assertEqual(classify_size(201, (100, 200)), BUCKET_WORSE)

    def test_cold_start_prediction_interpolates_and_clamps(self):
        self.assertEqual(predict_cold_start_ms(150, (100, 200), (1000, 2000)), 1500)
        self.assertEqual(predict_cold_start_ms(10, (100, 200), (1000, 2000)), 1000)
        self.assertEqual(predict_cold_start_ms(10_000, (100, 200), (1000, 2000)), 2000)
        self.assertEqual(predict_cold_start_ms(10, (100, 100), (300, 900)), 300)


class TestReportBuilder(unittest.TestCase):
    def setUp(self):
        self.builder = ReportBuilder(build_default_catalog())

    def test_rows_follow_execution_order_not_size(self):
        report = self.builder.build(
            [
                _measured("bundled", 1 * MIB),
                _measured("raw", 100 * MIB),
                _measured("pruned", 10 * MIB),
            ]
        )

        self.assertEqual([row.strategy_id for row in report.rows], ["bundled", "raw", "pruned"])
        self.assertTrue(all(row.bucket == BUCKET_AS_EXPECTED for row in report.rows))
        self.assertEqual(report.row("pruned").size_human, "10.0 MiB")

    def test_buckets_use_catalog_bands(self):
        report = self.builder.build([_measured("bundled", 1024), _measured("pruned", 600 * MIB)])

        self.assertEqual(report.row("bundled").bucket, BUCKET_BETTER)
        self.assertEqual(report.row("pruned").bucket, BUCKET_WORSE)
        self.assertEqual(report.row("bundled").predicted_cold_start_ms, 120)
        self.assertEqual(report.row("pruned").predicted_cold_start_ms, 1200)

    def test_failures_become_rows_with_reasons(self):
        timeout = BuildFailureError("timed out", strategy_id="raw", timed_out=True)
        failure = BuildFailureError("tsc failed", strategy_id="pruned", stderr="error TS2307", returncode=2)
        report = self.builder.build(
            [
                StrategyOutcome(strategy_id="raw", error=timeout, duration_ms=500),
                StrategyOutcome(strategy_id="pruned", error=failure, duration_ms=40),
                StrategyOutcome(strategy_id="bundled", artifact=_measured("bundled", 50_000), duration_ms=30),
            ]
        )

        raw, pruned, bundled = report.rows
        self.assertEqual(raw.bucket, BUCKET_FAILED)
        self.assertTrue(raw.timed_out)
        self.assertIsNone(raw.measured_size_bytes)
        self.assertEqual(pruned.error, "tsc failed")
        self.assertEqual(pruned.error_type, "BuildFailureError")
        self.assertFalse(pruned.timed_out)
        self.assertEqual(bundled.duration_ms, 30)
        self.assertEqual(report.failed_count, 2)

    def test_uninspected_artifact_is_rejected(self):
        with self.assertRaises(ValueError):
            self.builder.build([BuildArtifact(strategy_id="raw", output_path=Path("/tmp/raw"))])

    def test_frame_has_stable_schema_when_empty(self):
        frame = self.builder.build([]).to_frame()

        self.assertEqual(frame.height, 0)
        self.assertIn("measured_size_bytes", frame.columns)


class TestReportOutputs(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        builder = ReportBuilder(build_default_catalog())
        self.report = builder.build(
            [
                _measured("raw", 80 * MIB, file_count=5000, duration_ms=41_000),
                StrategyOutcome(
                    strategy_id="pruned",
                    error=BuildFailureError("npm prune exited with 1", strategy_id="pruned", returncode=1),
                    duration_ms=20_000,
                ),
                _measured("bundled", 700 * 1024, duration_ms=9_000),
            ],
            project_name="demo-api",
            entry_point="src/index.ts",
        )

    def tearDown(self):
        self._tmp.cleanup()

    def test_markdown_table_lists_every_strategy(self):
        text = render_comparison_markdown(self.report)

        self.assertIn("# Lambda Packaging Comparison (demo-api)", text)
        self.assertIn("| raw | 80.0 MiB | 83886080 | 5000 |", text)
        self.assertIn("| pruned | - | - | - | - | failed (BuildFailureError: npm prune exited with 1)", text)
        self.assertIn("| bundled | 700.0 KiB |", text)
        self.assertIn("41000", text)

    def test_format_follows_extension(self):
        self.assertEqual(report_format_for(Path("r.md")), "md")
        self.assertEqual(report_format_for(Path("r.JSON")), "json")
        self.assertEqual(report_format_for(Path("r.csv")), "csv")
        with self.assertRaises(ValueError):
            report_format_for(Path("r.xlsx"))

    def test_writes_json(self):
        path = write_report(self.report, self.tmp / "out" / "report.json")

        payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual([row["strategy_id"] for row in payload["rows"]], ["raw", "pruned", "bundled"])
        self.assertEqual(payload["rows"][0]["measured_size_bytes"], 80 * MIB)
        self.assertIsNone(payload["rows"][1]["measured_size_bytes"])

    def test_writes_csv(self):
        path = write_report(self.report, self.tmp / "report.csv")

        with path.open(encoding="utf-8", newline="") as handle:
            rows = list(csv.DictReader(handle))
        self.assertEqual([row["strategy_id"] for row in rows], ["raw", "pruned", "bundled"])
        self.assertEqual(rows[2]["bucket"], BUCKET_AS_EXPECTED)

    def test_writes_markdown_without_leftover_temp_files(self):
        path = write_report(self.report, self.tmp / "report.md")

        self.assertTrue(path.read_text(encoding="utf-8").startswith("# Lambda Packaging Comparison"))
        self.assertEqual(sorted(p.name for p in self.tmp.iterdir()), ["report.md"])


if __name__ == "__main__":
    unittest.main()
