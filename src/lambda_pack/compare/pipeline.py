"""Orchestrate manifest reading, strategy builds, inspection, and reporting for one invocation."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence
from uuid import uuid4

from lambda_pack.artifacts.inspector import ArtifactInspector, InspectorOptions
from lambda_pack.build.executor import ExecutorOptions, StrategyExecutor
from lambda_pack.build.process import ProcessRunner
from lambda_pack.build.workspace import ensure_distinct_work_dirs
from lambda_pack.config import AppSettings
from lambda_pack.errors import LambdaPackError
from lambda_pack.manifest.reader import PackageManifest
from lambda_pack.report.builder import ReportBuilder
from lambda_pack.report.models import ComparisonReport, StrategyOutcome
from lambda_pack.report.writer import write_report
from lambda_pack.strategies.catalog import STRATEGY_IDS, Strategy, StrategyCatalog
from lambda_pack.utils.time_utils import elapsed_ms

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompareRunOptions:
    """Runtime options for one comparison invocation."""

    strategies: tuple[str, ...] = STRATEGY_IDS
    timeout_seconds: float | None = None
    work_root: Path | None = None
    work_dirs: Mapping[str, Path] = field(default_factory=dict)
    jobs: int | None = None
    out_path: Path | None = None


@dataclass(frozen=True, slots=True)
class CompareRunResult:
    """Return object for comparison outcomes."""

    run_id: str
    report: ComparisonReport
    outcomes: tuple[StrategyOutcome, ...]
    report_path: Path | None


def run_strategy(
    strategy: Strategy,
    manifest: PackageManifest,
    work_dir: Path,
    *,
    executor: StrategyExecutor,
    inspector: ArtifactInspector,
    timeout_seconds: float | None = None,
    exclude_roots: Sequence[Path] = (),
    logger: logging.Logger | None = None,
) -> StrategyOutcome:
    """Build and inspect one strategy, capturing its failure instead of raising."""

    effective_logger = logger or LOGGER
    started_mono = time.monotonic()
    try:
        artifact = executor.execute(
            strategy,
            manifest,
            work_dir,
            timeout_seconds=timeout_seconds,
            exclude_roots=exclude_roots,
        )
        measured = inspector.inspect(artifact)
    except (LambdaPackError, OSError) as exc:
        effective_logger.warning(
            "compare.strategy_failed strategy=%s error_type=%s error=%s",
            strategy.identifier,
            type(exc).__name__,
            exc,
        )
        return StrategyOutcome(strategy_id=strategy.identifier, error=exc, duration_ms=elapsed_ms(started_mono))
    return StrategyOutcome(strategy_id=strategy.identifier, artifact=measured, duration_ms=elapsed_ms(started_mono))


def _work_dirs_for(
    strategies: Sequence[Strategy],
    options: CompareRunOptions,
    default_root: Path,
    run_id: str,
) -> dict[str, Path]:
    root = options.work_root or (default_root / run_id)
    return {
        strategy.identifier: options.work_dirs.get(strategy.identifier, root / strategy.identifier)
        for strategy in strategies
    }


def run_compare_pipeline(
    settings: AppSettings,
    manifest: PackageManifest,
    *,
    catalog: StrategyCatalog,
    options: CompareRunOptions | None = None,
    runner: ProcessRunner | None = None,
    logger: logging.Logger | None = None,
) -> CompareRunResult:
    """Run the selected strategies against one manifest and build the comparison report."""

    effective_logger = logger or LOGGER
    run_options = options or CompareRunOptions()
    strategies = catalog.resolve(run_options.strategies)
    if not strategies:
        raise ValueError("At least one strategy must be selected.")

    run_id = f"compare-{uuid4().hex[:12]}"
    jobs = max(1, run_options.jobs or settings.build.jobs)
    timeout_seconds = run_options.timeout_seconds or settings.build.timeout_seconds
    work_dirs = _work_dirs_for(strategies, run_options, settings.paths.work_root, run_id)
    exclude_roots = (run_options.work_root or settings.paths.work_root, *work_dirs.values())
    if jobs > 1:
        ensure_distinct_work_dirs(work_dirs)

    executor = StrategyExecutor(
        runner=runner,
        options=ExecutorOptions.from_settings(settings),
        logger=effective_logger,
    )
    inspector = ArtifactInspector(InspectorOptions.from_settings(settings), logger=effective_logger)

    effective_logger.info(
        "compare.start run_id=%s project=%s strategies=%s jobs=%s timeout=%s",
        run_id,
        manifest.name,
        [strategy.identifier for strategy in strategies],
        jobs,
        timeout_seconds,
    )

    def _run(strategy: Strategy) -> StrategyOutcome:
        return run_strategy(
            strategy,
            manifest,
            work_dirs[strategy.identifier],
            executor=executor,
            inspector=inspector,
            timeout_seconds=timeout_seconds,
            exclude_roots=exclude_roots,
            logger=effective_logger,
        )

    if jobs == 1 or len(strategies) == 1:
        outcomes = tuple(_run(strategy) for strategy in strategies)
    else:
        with ThreadPoolExecutor(max_workers=min(jobs, len(strategies)), thread_name_prefix="lambda-pack") as pool:
            # map() preserves submission order, so rows follow the requested strategy order.
            outcomes = tuple(pool.map(_run, strategies))

    report = ReportBuilder(catalog, logger=effective_logger).build(
        outcomes,
        project_name=manifest.name,
        entry_point=manifest.entry_point.as_posix(),
    )
    report_path = write_report(report, run_options.out_path) if run_options.out_path is not None else None

    effective_logger.info(
        "compare.done run_id=%s succeeded=%s failed=%s report=%s",
        run_id,
        len(outcomes) - report.failed_count,
        report.failed_count,
        report_path,
    )
    return CompareRunResult(run_id=run_id, report=report, outcomes=outcomes, report_path=report_path)
