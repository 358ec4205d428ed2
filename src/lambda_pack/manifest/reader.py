"""Read `package.json` manifests into immutable package descriptions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from lambda_pack.errors import ManifestNotFoundError, ManifestParseError
from lambda_pack.utils.paths import is_relative_to

LOGGER = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "package.json"
LOCKFILE_NAMES: tuple[str, ...] = ("package-lock.json", "npm-shrinkwrap.json")
TYPESCRIPT_SUFFIXES: frozenset[str] = frozenset({".ts", ".tsx", ".mts", ".cts"})


class _PackageJson(BaseModel):
    """Subset of package.json fields relevant to packaging."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: StrictStr | None = None
    version: StrictStr | None = None
    main: StrictStr | None = None
    dependencies: dict[StrictStr, StrictStr] = Field(default_factory=dict)
    dev_dependencies: dict[StrictStr, StrictStr] = Field(default_factory=dict, alias="devDependencies")


@dataclass(frozen=True, slots=True)
class PackageManifest:
    """Normalized, read-only description of one Node.js project."""

    name: str
    version: str
    project_root: Path
    manifest_path: Path
    entry_point: Path
    dependencies: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    dev_dependencies: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    lockfile: Path | None = None

    @property
    def entry_path(self) -> Path:
        """Absolute path to the entry file."""

        return self.project_root / self.entry_point

    @property
    def is_typescript(self) -> bool:
        return self.entry_point.suffix.lower() in TYPESCRIPT_SUFFIXES

    def dev_only_dependencies(self) -> tuple[str, ...]:
        """Dev dependency names that are not also production dependencies."""

        return tuple(sorted(name for name in self.dev_dependencies if name not in self.dependencies))

    def dependencies_for(self, include_dev: bool) -> dict[str, str]:
        """Dependency set a strategy materializes; production entries win on overlap."""

        selected: dict[str, str] = {}
        if include_dev:
            selected.update(self.dev_dependencies)
        selected.update(self.dependencies)
        return dict(sorted(selected.items()))


def _resolve_manifest_path(path: Path) -> Path:
    candidate = path / MANIFEST_FILE_NAME if path.is_dir() else path
    if not candidate.exists():
        raise ManifestNotFoundError(candidate)
    return candidate.resolve()


def _parse_payload(manifest_path: Path) -> _PackageJson:
    try:
        raw = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"{manifest_path}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    except UnicodeDecodeError as exc:
        raise ManifestParseError(f"{manifest_path}: not UTF-8 text") from exc

    if not isinstance(raw, dict):
        raise ManifestParseError(f"{manifest_path}: top-level value must be an object")
    try:
        return _PackageJson.model_validate(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ManifestParseError(f"{manifest_path}: {problems}") from exc


def _resolve_entry_point(project_root: Path, entry: Path | str | None, main: str | None) -> Path:
    chosen = Path(entry) if entry is not None else (Path(main) if main else None)
    if chosen is None:
        raise ManifestParseError("No entry point given and manifest has no 'main' field")

    absolute = chosen if chosen.is_absolute() else project_root / chosen
    if not is_relative_to(absolute, project_root):
        raise ManifestParseError(f"Entry point {chosen} is outside project root {project_root}")
    if not absolute.is_file():
        raise ManifestParseError(f"Entry point {chosen} does not exist under {project_root}")
    return absolute.resolve().relative_to(project_root)


def _find_lockfile(project_root: Path) -> Path | None:
    for name in LOCKFILE_NAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def read_manifest(
    path: Path | str,
    entry: Path | str | None = None,
    logger: logging.Logger | None = None,
) -> PackageManifest:
    """Read a package.json (or a directory holding one) into a PackageManifest."""

    effective_logger = logger or LOGGER
    manifest_path = _resolve_manifest_path(Path(path))
    project_root = manifest_path.parent
    payload = _parse_payload(manifest_path)
    entry_point = _resolve_entry_point(project_root, entry, payload.main)

    manifest = PackageManifest(
        name=payload.name or project_root.name,
        version=payload.version or "0.0.0",
        project_root=project_root,
        manifest_path=manifest_path,
        entry_point=entry_point,
        dependencies=MappingProxyType(dict(payload.dependencies)),
        dev_dependencies=MappingProxyType(dict(payload.dev_dependencies)),
        lockfile=_find_lockfile(project_root),
    )
    effective_logger.info(
        "manifest.read path=%s deps=%s dev_deps=%s entry=%s lockfile=%s",
        manifest_path,
        len(manifest.dependencies),
        len(manifest.dev_dependencies),
        manifest.entry_point,
        manifest.lockfile.name if manifest.lockfile else None,
    )
    return manifest
