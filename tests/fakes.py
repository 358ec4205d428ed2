"""Test doubles: a fake Node toolchain runner and project/settings builders."""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from lambda_pack.build.process import ProcessResult
from lambda_pack.config import AppSettings, load_settings

DEFAULT_PACKAGE_BYTES = 4_000
REACHABLE_FRACTION = 4


@dataclass
class RecordedCall:
    args: tuple[str, ...]
    cwd: Path
    timeout: float | None


@dataclass
class FakeNodeToolchain:
    """Mimics the filesystem effects of npm install/ci/prune, tsc, and esbuild."""

    package_sizes: Mapping[str, int] = field(default_factory=dict)
    fail_tool: str | None = None
    timeout_tool: str | None = None
    calls: list[RecordedCall] = field(default_factory=list)

    def _tool(self, args: Sequence[str]) -> str:
        if "esbuild" in args:
            return "esbuild"
        if "tsc" in args:
            return "tsc"
        if args[0] == "npm" and len(args) > 1:
            return f"npm-{args[1]}"
        return args[0]

    def _size_for(self, name: str) -> int:
        return int(self.package_sizes.get(name, DEFAULT_PACKAGE_BYTES))

    def _package_json(self, cwd: Path) -> dict:
        return json.loads((cwd / "package.json").read_text(encoding="utf-8"))

    def _install(self, args: Sequence[str], cwd: Path) -> None:
        payload = self._package_json(cwd)
        names = dict(payload.get("dependencies", {}))
        if "--omit=dev" not in args:
            names.update(payload.get("devDependencies", {}))
        for name in sorted(names):
            package_dir = cwd / "node_modules" / name
            package_dir.mkdir(parents=True, exist_ok=True)
            size = self._size_for(name)
            reachable = size // REACHABLE_FRACTION
            (package_dir / "package.json").write_text(json.dumps({"name": name}), encoding="utf-8")
            (package_dir / "index.js").write_text(f"// {name}:reachable\n" + "r" * reachable, encoding="utf-8")
            (package_dir / "unused.js").write_text(f"// {name}:unused\n" + "u" * (size - reachable), encoding="utf-8")

    def _prune(self, cwd: Path) -> None:
        payload = self._package_json(cwd)
        production = set(payload.get("dependencies", {}))
        for name in payload.get("devDependencies", {}):
            if name not in production:
                shutil.rmtree(cwd / "node_modules" / name, ignore_errors=True)

    def _compile(self, cwd: Path) -> None:
        dist = cwd / "dist"
        dist.mkdir(parents=True, exist_ok=True)
        for source in sorted((cwd / "src").rglob("*.ts")):
            target = dist / source.relative_to(cwd / "src").with_suffix(".js")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source.read_text(encoding="utf-8"), encoding="utf-8")

    def _bundle(self, args: Sequence[str], cwd: Path) -> None:
        outfile = next(arg.split("=", 1)[1] for arg in args if arg.startswith("--outfile="))
        entry = next(arg for arg in args if arg.endswith((".ts", ".js")) and not arg.startswith("--"))
        parts = [(cwd / entry).read_text(encoding="utf-8")]
        node_modules = cwd / "node_modules"
        if node_modules.is_dir():
            for index_file in sorted(node_modules.rglob("index.js")):
                parts.append(index_file.read_text(encoding="utf-8"))
        target = cwd / outfile
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("\n".join(parts), encoding="utf-8")

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        command = tuple(args)
        self.calls.append(RecordedCall(args=command, cwd=cwd, timeout=timeout))
        tool = self._tool(command)
        if tool == self.timeout_tool:
            return ProcessResult(args=command, returncode=-9, stdout="", stderr="", duration_ms=5, timed_out=True)
        if tool == self.fail_tool:
            return ProcessResult(args=command, returncode=1, stdout="", stderr=f"{tool}: boom", duration_ms=3)

        if tool in {"npm-install", "npm-ci"}:
            self._install(command, cwd)
        elif tool == "npm-prune":
            self._prune(cwd)
        elif tool == "tsc":
            self._compile(cwd)
        elif tool == "esbuild":
            self._bundle(command, cwd)
        return ProcessResult(args=command, returncode=0, stdout="ok", stderr="", duration_ms=1)

    def tools_called(self) -> list[str]:
        return [self._tool(call.args) for call in self.calls]


def write_project(
    root: Path,
    *,
    dependencies: Mapping[str, str] | None = None,
    dev_dependencies: Mapping[str, str] | None = None,
    entry: str | None = "src/index.ts",
    main: str | None = None,
    lockfile: bool = False,
    extra_fields: Mapping[str, object] | None = None,
) -> Path:
    """Write a small Node.js project and return its package.json path."""

    root.mkdir(parents=True, exist_ok=True)
    payload: dict[str, object] = {"name": "demo-api", "version": "1.2.3"}
    if main is not None:
        payload["main"] = main
    payload["dependencies"] = dict(dependencies or {})
    payload["devDependencies"] = dict(dev_dependencies or {})
    payload.update(extra_fields or {})
    manifest_path = root / "package.json"
    manifest_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    if entry is not None:
        entry_path = root / entry
        entry_path.parent.mkdir(parents=True, exist_ok=True)
        entry_path.write_text(
            "import express from 'express';\nexport const handler = async () => ({ statusCode: 200 });\n",
            encoding="utf-8",
        )
    if lockfile:
        (root / "package-lock.json").write_text(json.dumps({"lockfileVersion": 3}), encoding="utf-8")
    return manifest_path


def make_settings(root: Path, build_yaml: str = "") -> AppSettings:
    """Load settings from a throwaway configs/settings.yaml under root; `build_yaml` lines extend the build block."""

    config_dir = root / "configs"
    config_dir.mkdir(parents=True, exist_ok=True)
    settings_file = config_dir / "settings.yaml"
    settings_file.write_text(
        "paths:\n"
        "  work_root: ./work\n"
        "  reports_root: ./reports\n"
        "  logs_root: ./logs\n"
        "build:\n"
        "  timeout_seconds: 30\n"
        "  measure_zipped: false\n" + build_yaml,
        encoding="utf-8",
    )
    return load_settings(config_file=settings_file)


EXPRESS_SCENARIO_DEPS = {"express": "4.18.0"}
EXPRESS_SCENARIO_DEV_DEPS = {"typescript": "5.0.0", "@types/node": "20.0.0"}
EXPRESS_SCENARIO_SIZES = {"express": 40_000, "typescript": 120_000, "@types/node": 30_000}
