"""Turn strategy outcomes into a classified comparison report."""

from __future__ import annotations

import logging
from typing import Sequence

from lambda_pack.artifacts.models import BuildArtifact
from lambda_pack.errors import BuildFailureError
from lambda_pack.report.models import (
    BUCKET_AS_EXPECTED,
    BUCKET_BETTER,
    BUCKET_FAILED,
    BUCKET_WORSE,
    ComparisonReport,
    ReportRow,
    StrategyOutcome,
)
from lambda_pack.strategies.catalog import StrategyCatalog
from lambda_pack.utils.units import format_bytes

LOGGER = logging.getLogger(__name__)


def classify_size(size_bytes: int, expected_range: tuple[int, int]) -> str:
    """Place a measured size against the strategy's expected band."""

    low, high = expected_range
    if size_bytes < low:
        return BUCKET_BETTER
    if size_bytes > high:
        return BUCKET_WORSE
    return BUCKET_AS_EXPECTED


def predict_cold_start_ms(
    size_bytes: int,
    expected_size_range: tuple[int, int],
    expected_cold_start_ms: tuple[int, int],
) -> int:
    """Linearly map size within its band onto the cold-start band, clamped at both ends."""

    size_low, size_high = expected_size_range
    cold_low, cold_high = expected_cold_start_ms
    if size_high <= size_low:
        return cold_low
    position = (size_bytes - size_low) / (size_high - size_low)
    position = min(1.0, max(0.0, position))
    return int(round(cold_low + position * (cold_high - cold_low)))


class ReportBuilder:
    """Builds ComparisonReports using the catalog's expected figures as reference bands."""

    def __init__(self, catalog: StrategyCatalog, logger: logging.Logger | None = None) -> None:
        self._catalog = catalog
        self._logger = logger or LOGGER

    def _failed_row(self, outcome: StrategyOutcome) -> ReportRow:
        error = outcome.error
        strategy = self._catalog.get(outcome.strategy_id)
        return ReportRow(
            strategy_id=outcome.strategy_id,
            bucket=BUCKET_FAILED,
            expected_size_range_bytes=strategy.expected_size_range_bytes,
            duration_ms=outcome.duration_ms,
            error=str(error) if error is not None else "no artifact produced",
            error_type=type(error).__name__ if error is not None else None,
            timed_out=isinstance(error, BuildFailureError) and error.timed_out,
        )

    def _measured_row(self, outcome: StrategyOutcome, artifact: BuildArtifact) -> ReportRow:
        if not artifact.is_measured:
            raise ValueError(f"Artifact for strategy '{artifact.strategy_id}' has not been inspected")
        strategy = self._catalog.get(artifact.strategy_id)
        size_bytes = int(artifact.size_bytes or 0)
        return ReportRow(
            strategy_id=artifact.strategy_id,
            bucket=classify_size(size_bytes, strategy.expected_size_range_bytes),
            measured_size_bytes=size_bytes,
            size_human=format_bytes(size_bytes),
            file_count=artifact.file_count,
            zipped_size_bytes=artifact.zipped_size_bytes,
            exceeds_lambda_limit=artifact.exceeds_lambda_limit,
            expected_size_range_bytes=strategy.expected_size_range_bytes,
            predicted_cold_start_ms=predict_cold_start_ms(
                size_bytes,
                strategy.expected_size_range_bytes,
                strategy.expected_cold_start_ms,
            ),
            duration_ms=outcome.duration_ms if outcome.duration_ms is not None else artifact.duration_ms,
        )

    def build(
        self,
        results: Sequence[StrategyOutcome | BuildArtifact],
        *,
        project_name: str | None = None,
        entry_point: str | None = None,
    ) -> ComparisonReport:
        """Build rows in the given (execution) order."""

        rows: list[ReportRow] = []
        for result in results:
            outcome = (
                StrategyOutcome(strategy_id=result.strategy_id, artifact=result, duration_ms=result.duration_ms)
                if isinstance(result, BuildArtifact)
                else result
            )
            if outcome.succeeded and outcome.artifact is not None:
                row = self._measured_row(outcome, outcome.artifact)
            else:
                row = self._failed_row(outcome)
            self._logger.info(
                "report.row strategy=%s bucket=%s size_bytes=%s",
                row.strategy_id,
                row.bucket,
                row.measured_size_bytes,
            )
            rows.append(row)
        return ComparisonReport(rows=tuple(rows), project_name=project_name, entry_point=entry_point)
