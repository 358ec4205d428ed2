"""Comparison report records."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Final

import polars as pl

from lambda_pack.artifacts.models import BuildArtifact
from lambda_pack.utils.time_utils import now_utc

BUCKET_BETTER: Final[str] = "better than expected"
BUCKET_AS_EXPECTED: Final[str] = "as expected"
BUCKET_WORSE: Final[str] = "worse than expected (investigate)"
BUCKET_FAILED: Final[str] = "failed"


@dataclass(frozen=True, slots=True)
class StrategyOutcome:
    """Result of attempting one strategy: an inspected artifact or the error that stopped it."""

    strategy_id: str
    artifact: BuildArtifact | None = None
    error: Exception | None = None
    duration_ms: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.artifact is not None and self.error is None


@dataclass(frozen=True, slots=True)
class ReportRow:
    """One strategy line in the comparison table."""

    strategy_id: str
    bucket: str
    measured_size_bytes: int | None = None
    size_human: str = "n/a"
    file_count: int | None = None
    zipped_size_bytes: int | None = None
    exceeds_lambda_limit: bool | None = None
    expected_size_range_bytes: tuple[int, int] | None = None
    predicted_cold_start_ms: int | None = None
    duration_ms: int | None = None
    error: str | None = None
    error_type: str | None = None
    timed_out: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None


_FRAME_SCHEMA: Final[dict[str, pl.DataType]] = {
    "strategy_id": pl.String,
    "measured_size_bytes": pl.Int64,
    "size_human": pl.String,
    "file_count": pl.Int64,
    "zipped_size_bytes": pl.Int64,
    "bucket": pl.String,
    "predicted_cold_start_ms": pl.Int64,
    "duration_ms": pl.Int64,
    "exceeds_lambda_limit": pl.Boolean,
    "timed_out": pl.Boolean,
    "error_type": pl.String,
    "error": pl.String,
}


@dataclass(frozen=True, slots=True)
class ComparisonReport:
    """Ordered per-strategy rows for one invocation."""

    rows: tuple[ReportRow, ...]
    project_name: str | None = None
    entry_point: str | None = None
    generated_at: datetime = field(default_factory=now_utc)

    def row(self, strategy_id: str) -> ReportRow:
        for row in self.rows:
            if row.strategy_id == strategy_id:
                return row
        raise KeyError(strategy_id)

    @property
    def failed_count(self) -> int:
        return sum(1 for row in self.rows if row.failed)

    def as_dict(self) -> dict[str, Any]:
        return {
            "project_name": self.project_name,
            "entry_point": self.entry_point,
            "generated_at": self.generated_at.isoformat(),
            "rows": [asdict(row) for row in self.rows],
        }

    def to_frame(self) -> pl.DataFrame:
        """Return rows as a Polars frame with a stable schema."""

        records = [{column: getattr(row, column) for column in _FRAME_SCHEMA} for row in self.rows]
        if not records:
            return pl.DataFrame(schema=_FRAME_SCHEMA)
        return pl.DataFrame(records, schema=_FRAME_SCHEMA)
