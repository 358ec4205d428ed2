"""Run one packaging strategy against a staged copy of the project."""

from __future__ import annotations

import logging
import shlex
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from lambda_pack.artifacts.models import BuildArtifact
from lambda_pack.build.process import ProcessRunner, SubprocessRunner
from lambda_pack.build.workspace import claim_run_directory, stage_project
from lambda_pack.config import AppSettings
from lambda_pack.errors import ArtifactMissingError, BuildFailureError, ManifestParseError
from lambda_pack.manifest.reader import PackageManifest
from lambda_pack.strategies.catalog import CommandTemplate, Strategy
from lambda_pack.utils.time_utils import elapsed_ms

LOGGER = logging.getLogger(__name__)

BUNDLE_FILE_NAME = "index.js"
STDERR_TAIL_CHARS = 2000


@dataclass(frozen=True, slots=True)
class ExecutorOptions:
    """Toolchain and bundler knobs applied when binding command templates."""

    npm: str = "npm"
    tsc: str = "npx --no-install tsc"
    esbuild: str = "npx --yes esbuild"
    node_target: str = "node18"
    minify: bool = True
    sourcemap: bool = False
    externals: tuple[str, ...] = ("@aws-sdk/*",)
    timeout_seconds: float | None = 600.0
    env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ExecutorOptions":
        return cls(
            npm=settings.toolchain.npm,
            tsc=settings.toolchain.tsc,
            esbuild=settings.toolchain.esbuild,
            node_target=settings.build.node_target,
            minify=settings.build.minify,
            sourcemap=settings.build.sourcemap,
            externals=tuple(settings.build.externals),
            timeout_seconds=settings.build.timeout_seconds,
        )

    def bundle_flags(self) -> list[str]:
        flags: list[str] = []
        if self.minify:
            flags.append("--minify")
        if self.sourcemap:
            flags.append("--sourcemap")
        flags.extend(f"--external:{name}" for name in self.externals)
        return flags


def bind_command(
    template: CommandTemplate,
    spliced: Mapping[str, Sequence[str]],
    values: Mapping[str, str],
) -> list[str]:
    """Bind a template: whole-token `{name}` splices a token list, other placeholders format in place."""

    bound: list[str] = []
    for token in template.tokens:
        if token.startswith("{") and token.endswith("}") and token[1:-1] in spliced:
            bound.extend(spliced[token[1:-1]])
            continue
        try:
            bound.append(token.format_map(values))
        except KeyError as exc:
            raise ValueError(f"Unbound placeholder {exc} in step '{template.label}'") from exc
    return bound


def _tail(text: str, limit: int = STDERR_TAIL_CHARS) -> str:
    stripped = text.strip()
    return stripped if len(stripped) <= limit else "..." + stripped[-limit:]


class StrategyExecutor:
    """Materializes dependencies and runs a strategy's build steps in an isolated run directory."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        options: ExecutorOptions | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner or SubprocessRunner()
        self._options = options or ExecutorOptions()
        self._logger = logger or LOGGER

    @property
    def options(self) -> ExecutorOptions:
        return self._options

    def _requires_entry(self, strategy: Strategy, manifest: PackageManifest) -> bool:
        for step in strategy.build_steps:
            if any("{entry}" in token for token in step.tokens):
                return True
            if step.typescript_only and manifest.is_typescript:
                return True
        return False

    def _bindings(
        self,
        manifest: PackageManifest,
        run_dir: Path,
        out_dir: Path,
    ) -> tuple[dict[str, list[str]], dict[str, str]]:
        entry = manifest.entry_point.as_posix()
        if (run_dir / "tsconfig.json").is_file():
            tsc_input = ["--project", "tsconfig.json"]
        else:
            tsc_input = [entry]
        spliced = {
            "npm": shlex.split(self._options.npm),
            "tsc": shlex.split(self._options.tsc),
            "esbuild": shlex.split(self._options.esbuild),
            "tsc_input": tsc_input,
            "bundle_flags": self._options.bundle_flags(),
        }
        values = {
            "install": "ci" if manifest.lockfile is not None else "install",
            "entry": entry,
            "out_dir": out_dir.relative_to(run_dir).as_posix(),
            "node_target": self._options.node_target,
        }
        return spliced, values

    def _run_steps(
        self,
        strategy: Strategy,
        manifest: PackageManifest,
        run_dir: Path,
        out_dir: Path,
        timeout_seconds: float | None,
    ) -> None:
        spliced, values = self._bindings(manifest, run_dir, out_dir)
        deadline = None if timeout_seconds is None else time.monotonic() + timeout_seconds

        for step in strategy.build_steps:
            if step.typescript_only and not manifest.is_typescript:
                self._logger.info(
                    "executor.skip_step strategy=%s step=%s reason=javascript_entry",
                    strategy.identifier,
                    step.label,
                )
                continue
            remaining: float | None = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise BuildFailureError(
                        f"Strategy '{strategy.identifier}' timed out before step '{step.label}'",
                        strategy_id=strategy.identifier,
                        timed_out=True,
                    )

            args = bind_command(step, spliced, values)
            self._logger.info("executor.step strategy=%s step=%s args=%s", strategy.identifier, step.label, args)
            result = self._runner.run(args, cwd=run_dir, timeout=remaining, env=self._options.env or None)
            if result.timed_out:
                raise BuildFailureError(
                    f"Strategy '{strategy.identifier}' timed out during step '{step.label}' "
                    f"after {result.duration_ms} ms",
                    strategy_id=strategy.identifier,
                    stderr=result.stderr,
                    returncode=result.returncode,
                    timed_out=True,
                )
            if result.returncode != 0:
                raise BuildFailureError(
                    f"Strategy '{strategy.identifier}' step '{step.label}' exited with "
                    f"{result.returncode}: {_tail(result.stderr) or '(no stderr)'}",
                    strategy_id=strategy.identifier,
                    stderr=result.stderr,
                    returncode=result.returncode,
                )

    def _verify_output(self, strategy: Strategy, out_dir: Path) -> None:
        if not out_dir.is_dir():
            raise ArtifactMissingError(f"Strategy '{strategy.identifier}' produced no output at {out_dir}")
        if not strategy.single_file_output:
            return
        allowed = {BUNDLE_FILE_NAME, f"{BUNDLE_FILE_NAME}.map"}
        produced = sorted(path.name for path in out_dir.iterdir())
        if BUNDLE_FILE_NAME not in produced:
            raise ArtifactMissingError(f"Bundler did not write {out_dir / BUNDLE_FILE_NAME}")
        unexpected = [name for name in produced if name not in allowed]
        if unexpected:
            raise ArtifactMissingError(
                f"Bundle output {out_dir} should hold a single file, found extra entries: {', '.join(unexpected)}"
            )

    def _warn_leftover_dev_dependencies(self, manifest: PackageManifest, run_dir: Path) -> None:
        node_modules = run_dir / "node_modules"
        leftovers = [name for name in manifest.dev_only_dependencies() if (node_modules / name).exists()]
        if leftovers:
            self._logger.warning(
                "executor.dev_dependencies_remaining names=%s (transitive production dependencies?)",
                leftovers,
            )

    def execute(
        self,
        strategy: Strategy,
        manifest: PackageManifest,
        work_dir: Path,
        *,
        timeout_seconds: float | None = None,
        run_id: str | None = None,
        exclude_roots: Sequence[Path] = (),
    ) -> BuildArtifact:
        """Build `strategy` for `manifest` under a fresh subdirectory of `work_dir`.

        `exclude_roots` lists directories (other strategies' work dirs) that must not be staged.
        """

        if self._requires_entry(strategy, manifest) and not manifest.entry_path.is_file():
            raise ManifestParseError(
                f"Entry point {manifest.entry_point} missing under {manifest.project_root}; "
                f"strategy '{strategy.identifier}' cannot run"
            )

        effective_timeout = timeout_seconds if timeout_seconds is not None else self._options.timeout_seconds
        started_mono = time.monotonic()

        run = claim_run_directory(work_dir, strategy.identifier, run_id=run_id)
        self._logger.info(
            "executor.start strategy=%s run_dir=%s timeout=%s dependencies=%s",
            strategy.identifier,
            run.path,
            effective_timeout,
            sorted(manifest.dependencies_for(strategy.include_dev_dependencies)),
        )
        stage_project(manifest, run.path, logger=self._logger, exclude_roots=exclude_roots)

        out_dir = (run.path / strategy.output_subdir).resolve()
        out_dir.mkdir(parents=True, exist_ok=True)

        self._run_steps(strategy, manifest, run.path, out_dir, effective_timeout)
        self._verify_output(strategy, out_dir)
        if not strategy.include_dev_dependencies and not strategy.single_file_output:
            self._warn_leftover_dev_dependencies(manifest, run.path)

        duration = elapsed_ms(started_mono)
        self._logger.info("executor.done strategy=%s output=%s duration_ms=%s", strategy.identifier, out_dir, duration)
        return BuildArtifact(
            strategy_id=strategy.identifier,
            output_path=out_dir,
            run_dir=run.path,
            duration_ms=duration,
        )
