"""Child-process execution behind a swappable runner interface."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol, Sequence

from lambda_pack.utils.time_utils import elapsed_ms

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Outcome of one external command."""

    args: tuple[str, ...]
    returncode: int | None
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.returncode == 0


class ProcessRunner(Protocol):
    """Runs one command to completion or until its timeout."""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult: ...


def _kill_process_group(process: subprocess.Popen[str], logger: logging.Logger) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        return
    except PermissionError as exc:
        logger.warning("process.killpg_failed pid=%s error=%s; killing child only", process.pid, exc)
        process.kill()


class SubprocessRunner:
    """Real runner: each child leads its own process group so timeouts kill the whole tree."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        command = tuple(args)
        merged_env = dict(os.environ)
        if env:
            merged_env.update(env)

        self._logger.info("process.start cwd=%s args=%s timeout=%s", cwd, " ".join(command), timeout)
        started_mono = time.monotonic()
        try:
            process = subprocess.Popen(
                command,
                cwd=cwd,
                env=merged_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
                start_new_session=True,
            )
        except FileNotFoundError as exc:
            return ProcessResult(
                args=command,
                returncode=127,
                stdout="",
                stderr=f"command not found: {exc.filename or command[0]}",
                duration_ms=elapsed_ms(started_mono),
            )

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_process_group(process, self._logger)
            stdout, stderr = process.communicate()
            duration = elapsed_ms(started_mono)
            self._logger.warning("process.timeout args=%s duration_ms=%s", " ".join(command), duration)
            return ProcessResult(
                args=command,
                returncode=process.returncode,
                stdout=stdout or "",
                stderr=stderr or "",
                duration_ms=duration,
                timed_out=True,
            )

        duration = elapsed_ms(started_mono)
        self._logger.info("process.exit returncode=%s duration_ms=%s", process.returncode, duration)
        return ProcessResult(
            args=command,
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            duration_ms=duration,
        )
