"""Strategy execution: process runners, run directories, and the executor."""

from lambda_pack.build.executor import ExecutorOptions, StrategyExecutor, bind_command
from lambda_pack.build.process import ProcessResult, ProcessRunner, SubprocessRunner
from lambda_pack.build.workspace import (
    RunDirectory,
    claim_run_directory,
    ensure_distinct_work_dirs,
    stage_project,
)

__all__ = [
    "ExecutorOptions",
    "StrategyExecutor",
    "bind_command",
    "ProcessResult",
    "ProcessRunner",
    "SubprocessRunner",
    "RunDirectory",
    "claim_run_directory",
    "ensure_distinct_work_dirs",
    "stage_project",
]
