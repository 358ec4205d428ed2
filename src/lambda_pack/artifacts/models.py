"""Build artifact record shared by the executor, inspector, and report builder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    """Output of one strategy run; size fields stay None until inspected."""

    strategy_id: str
    output_path: Path
    run_dir: Path | None = None
    duration_ms: int | None = None
    size_bytes: int | None = None
    file_count: int | None = None
    zipped_size_bytes: int | None = None
    exceeds_lambda_limit: bool | None = None

    @property
    def is_measured(self) -> bool:
        return self.size_bytes is not None and self.file_count is not None
