"""Measure build outputs and check them against Lambda package limits."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
import zipfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterator

from lambda_pack.artifacts.models import BuildArtifact
from lambda_pack.config import AppSettings
from lambda_pack.errors import ArtifactMissingError

LOGGER = logging.getLogger(__name__)

DEFAULT_UNZIPPED_LIMIT_BYTES = 250 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class InspectorOptions:
    """Inspection behavior."""

    measure_zipped: bool = False
    unzipped_limit_bytes: int = DEFAULT_UNZIPPED_LIMIT_BYTES

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "InspectorOptions":
        return cls(
            measure_zipped=settings.build.measure_zipped,
            unzipped_limit_bytes=settings.limits.lambda_unzipped_limit_bytes,
        )


def iter_regular_files(root: Path) -> Iterator[tuple[Path, int]]:
    """Yield (path, size) for regular files under root; symlinks are not followed."""

    if root.is_file():
        info = root.lstat()
        if stat.S_ISREG(info.st_mode):
            yield root, info.st_size
        return

    for directory, dir_names, file_names in os.walk(root, followlinks=False):
        dir_names.sort()
        for file_name in sorted(file_names):
            path = Path(directory) / file_name
            info = path.lstat()
            if stat.S_ISREG(info.st_mode):
                yield path, info.st_size


def measure_tree(root: Path) -> tuple[int, int]:
    """Return (total bytes, regular file count) under root."""

    total = 0
    count = 0
    for _, size in iter_regular_files(root):
        total += size
        count += 1
    return total, count


def estimate_zipped_size(root: Path) -> int:
    """Deflate every regular file into a scratch zip and return its byte size."""

    base = root.parent if root.is_file() else root
    with tempfile.TemporaryFile() as scratch:
        with zipfile.ZipFile(scratch, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
            for path, _ in iter_regular_files(root):
                archive.write(path, arcname=path.relative_to(base).as_posix())
        scratch.seek(0, os.SEEK_END)
        return scratch.tell()


class ArtifactInspector:
    """Populates size and file-count fields of a BuildArtifact."""

    def __init__(self, options: InspectorOptions | None = None, logger: logging.Logger | None = None) -> None:
        self._options = options or InspectorOptions()
        self._logger = logger or LOGGER

    def inspect(self, artifact: BuildArtifact) -> BuildArtifact:
        output_path = artifact.output_path
        if not output_path.exists():
            raise ArtifactMissingError(
                f"Artifact for strategy '{artifact.strategy_id}' is missing at {output_path}"
            )

        size_bytes, file_count = measure_tree(output_path)
        zipped_size: int | None = None
        if self._options.measure_zipped:
            zipped_size = estimate_zipped_size(output_path)

        exceeds_limit = size_bytes > self._options.unzipped_limit_bytes
        if exceeds_limit:
            self._logger.warning(
                "inspector.lambda_limit_exceeded strategy=%s size_bytes=%s limit_bytes=%s",
                artifact.strategy_id,
                size_bytes,
                self._options.unzipped_limit_bytes,
            )
        self._logger.info(
            "inspector.measured strategy=%s size_bytes=%s file_count=%s zipped_bytes=%s",
            artifact.strategy_id,
            size_bytes,
            file_count,
            zipped_size,
        )
        return replace(
            artifact,
            size_bytes=size_bytes,
            file_count=file_count,
            zipped_size_bytes=zipped_size,
            exceeds_lambda_limit=exceeds_limit,
        )
