"""Scoped run directories and project staging for strategy builds."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping
from uuid import uuid4

from lambda_pack.errors import WorkDirConflictError
from lambda_pack.manifest.reader import PackageManifest
from lambda_pack.utils.paths import is_relative_to

LOGGER = logging.getLogger(__name__)

STAGING_EXCLUDES: frozenset[str] = frozenset(
    {"node_modules", ".git", "dist", "bundle", ".lambda_pack", ".aws-sam", "coverage"}
)


@dataclass(frozen=True, slots=True)
class RunDirectory:
    """A run-private directory under a caller-supplied work directory."""

    run_id: str
    work_dir: Path
    path: Path


def _check_writable_dir(work_dir: Path) -> None:
    if work_dir.exists() and not work_dir.is_dir():
        raise WorkDirConflictError(f"Work directory {work_dir} exists and is not a directory")
    work_dir.mkdir(parents=True, exist_ok=True)
    if not os.access(work_dir, os.W_OK | os.X_OK):
        raise WorkDirConflictError(f"Work directory {work_dir} is not writable")


def claim_run_directory(work_dir: Path, strategy_id: str, run_id: str | None = None) -> RunDirectory:
    """Create `<work_dir>/<strategy>-<run id>`; an existing directory is a conflict."""

    resolved_work_dir = work_dir.resolve()
    _check_writable_dir(resolved_work_dir)
    effective_run_id = run_id or uuid4().hex[:12]
    path = resolved_work_dir / f"{strategy_id}-{effective_run_id}"
    try:
        path.mkdir(parents=False, exist_ok=False)
    except FileExistsError as exc:
        raise WorkDirConflictError(f"Run directory {path} is already in use") from exc
    return RunDirectory(run_id=effective_run_id, work_dir=resolved_work_dir, path=path)


def ensure_distinct_work_dirs(work_dirs: Mapping[str, Path]) -> None:
    """Reject strategy work directories that coincide or nest inside each other."""

    items = [(strategy_id, path.resolve(strict=False)) for strategy_id, path in work_dirs.items()]
    for index, (left_id, left_path) in enumerate(items):
        for right_id, right_path in items[index + 1 :]:
            if is_relative_to(left_path, right_path) or is_relative_to(right_path, left_path):
                raise WorkDirConflictError(
                    f"Strategies '{left_id}' and '{right_id}' share work directory "
                    f"{left_path} / {right_path}"
                )


def stage_project(
    manifest: PackageManifest,
    destination: Path,
    logger: logging.Logger | None = None,
    *,
    exclude_roots: Iterable[Path] = (),
) -> Path:
    """Copy the project sources into `destination`, skipping installs, outputs, and VCS data.

    Top-level install and output directories are skipped by name. Anything under `destination`,
    its parent, or one of `exclude_roots` is skipped at any depth.
    """

    effective_logger = logger or LOGGER
    source_root = manifest.project_root.resolve()
    destination_resolved = destination.resolve()
    # Work directories may live inside the project being staged.
    candidates = [destination_resolved, destination_resolved.parent, *exclude_roots]
    # Roots that contain the project are not excluded.
    excluded_roots = [root for root in candidates if not is_relative_to(source_root, root)]

    def _ignore(directory: str, names: list[str]) -> set[str]:
        at_top_level = Path(directory).resolve() == source_root
        skipped: set[str] = set()
        for name in names:
            if at_top_level and name in STAGING_EXCLUDES:
                skipped.add(name)
                continue
            candidate = Path(directory) / name
            if any(is_relative_to(candidate, root) for root in excluded_roots):
                skipped.add(name)
        return skipped

    shutil.copytree(source_root, destination, ignore=_ignore, dirs_exist_ok=True, symlinks=True)
    effective_logger.info("workspace.staged source=%s destination=%s", source_root, destination)
    return destination
