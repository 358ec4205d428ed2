"""Typer CLI entrypoint for lambda_pack."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml

from lambda_pack.artifacts.inspector import ArtifactInspector, InspectorOptions
from lambda_pack.artifacts.models import BuildArtifact
from lambda_pack.build.process import SubprocessRunner
from lambda_pack.compare.pipeline import CompareRunOptions, run_compare_pipeline
from lambda_pack.config import AppSettings, load_settings
from lambda_pack.errors import (
    ArtifactMissingError,
    ManifestNotFoundError,
    ManifestParseError,
    UnknownStrategyError,
    WorkDirConflictError,
)
from lambda_pack.logging_utils import configure_logging
from lambda_pack.manifest.reader import read_manifest
from lambda_pack.report.builder import ReportBuilder
from lambda_pack.report.render import render_comparison_markdown
from lambda_pack.report.writer import report_format_for
from lambda_pack.strategies.catalog import StrategyCatalog, build_default_catalog
from lambda_pack.utils.units import format_bytes

app = typer.Typer(
    add_completion=False,
    help="lambda_pack command line interface.",
    no_args_is_help=True,
)

CONFIG_FILE_OPTION_HELP = "Optional settings YAML path."


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        logger = configure_logging(settings.paths.logs_root / "lambda_pack.log")
    else:
        logger = logging.getLogger("lambda_pack")
    return settings, logger


def _parse_strategy_csv(value: str, catalog: StrategyCatalog) -> tuple[str, ...]:
    items = [part.strip().lower() for part in value.split(",") if part.strip() != ""]
    if not items:
        raise typer.BadParameter("strategies must contain at least one strategy.")
    try:
        resolved = catalog.resolve(items)
    except UnknownStrategyError as exc:
        raise typer.BadParameter(str(exc), param_hint="--strategies") from exc
    return tuple(strategy.identifier for strategy in resolved)


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help=CONFIG_FILE_OPTION_HELP,
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("list-strategies")
def list_strategies() -> None:
    """Print the strategy catalog with expected size and cold-start bands."""

    catalog = build_default_catalog()
    for strategy in catalog.list():
        size_low, size_high = strategy.expected_size_range_bytes
        cold_low, cold_high = strategy.expected_cold_start_ms
        typer.echo(f"{strategy.identifier}: {strategy.description}")
        typer.echo(f"  expected_size: {format_bytes(size_low)} - {format_bytes(size_high)}")
        typer.echo(f"  expected_cold_start_ms: {cold_low} - {cold_high}")
        typer.echo(f"  steps: {', '.join(step.label for step in strategy.build_steps)}")


@app.command("compare")
def compare(
    manifest: Path = typer.Option(
        ...,
        "--manifest",
        help="Path to package.json (or the directory holding it).",
    ),
    entry: Path | None = typer.Option(
        None,
        "--entry",
        help="Entry point relative to the project root. Defaults to the manifest 'main' field.",
    ),
    strategies: str = typer.Option(
        "raw,pruned,bundled",
        "--strategies",
        help="Comma-separated strategies from: raw,pruned,bundled",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=0.001,
        help="Per-strategy build timeout in seconds (defaults to build.timeout_seconds).",
    ),
    out: Path | None = typer.Option(
        None,
        "--out",
        help="Report path; format follows the extension (.md, .json, .csv).",
    ),
    work_dir: Path | None = typer.Option(
        None,
        "--work-dir",
        help="Root for per-strategy build directories (defaults to paths.work_root/<run id>).",
    ),
    jobs: int | None = typer.Option(
        None,
        "--jobs",
        min=1,
        help="Run up to N strategies in parallel.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help=CONFIG_FILE_OPTION_HELP,
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Build each requested strategy and report artifact size and predicted cold-start class."""

    catalog = build_default_catalog()
    selected = _parse_strategy_csv(strategies, catalog)
    if out is not None:
        try:
            report_format_for(out)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--out") from exc

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)

    try:
        package = read_manifest(manifest, entry=entry, logger=logger)
    except (ManifestNotFoundError, ManifestParseError) as exc:
        logger.error("compare.manifest_unreadable manifest=%s error=%s", manifest, exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    options = CompareRunOptions(
        strategies=selected,
        timeout_seconds=timeout,
        work_root=work_dir.resolve() if work_dir is not None else None,
        jobs=jobs,
        out_path=out,
    )
    try:
        result = run_compare_pipeline(
            settings,
            package,
            catalog=catalog,
            options=options,
            runner=SubprocessRunner(logger=logger),
            logger=logger,
        )
    except WorkDirConflictError as exc:
        raise typer.BadParameter(str(exc), param_hint="--work-dir") from exc

    typer.echo(render_comparison_markdown(result.report))
    typer.echo(f"run_id: {result.run_id}")
    typer.echo(f"failed_strategies: {result.report.failed_count}")
    typer.echo(f"report: {result.report_path if result.report_path else 'stdout only'}")


@app.command("inspect")
def inspect_artifact(
    path: Path = typer.Option(
        ...,
        "--path",
        help="Existing build output (file or directory) to measure.",
    ),
    strategy: str = typer.Option(
        ...,
        "--strategy",
        help="Strategy whose expected bands classify the measurement.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help=CONFIG_FILE_OPTION_HELP,
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Measure an existing artifact and classify it against a strategy's expected size band."""

    catalog = build_default_catalog()
    try:
        selected = catalog.get(strategy.strip().lower())
    except UnknownStrategyError as exc:
        raise typer.BadParameter(str(exc), param_hint="--strategy") from exc

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    inspector = ArtifactInspector(InspectorOptions.from_settings(settings), logger=logger)
    try:
        measured = inspector.inspect(BuildArtifact(strategy_id=selected.identifier, output_path=path.resolve()))
    except ArtifactMissingError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    row = ReportBuilder(catalog, logger=logger).build([measured]).rows[0]
    typer.echo(f"strategy: {row.strategy_id}")
    typer.echo(f"path: {measured.output_path}")
    typer.echo(f"size: {row.size_human} ({row.measured_size_bytes} bytes)")
    typer.echo(f"files: {row.file_count}")
    if row.zipped_size_bytes is not None:
        typer.echo(f"zipped: {format_bytes(row.zipped_size_bytes)} ({row.zipped_size_bytes} bytes)")
    typer.echo(f"bucket: {row.bucket}")
    typer.echo(f"predicted_cold_start_ms: {row.predicted_cold_start_ms}")
    typer.echo(f"exceeds_lambda_limit: {row.exceeds_lambda_limit}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
