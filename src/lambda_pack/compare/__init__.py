"""End-to-end strategy comparison."""

from lambda_pack.compare.pipeline import (
    CompareRunOptions,
    CompareRunResult,
    run_compare_pipeline,
    run_strategy,
)

__all__ = [
    "CompareRunOptions",
    "CompareRunResult",
    "run_compare_pipeline",
    "run_strategy",
]
