"""Command execution orchestration."""

from termexec.execution.acquire import acquire_terminal, select_provider
from termexec.execution.normalize import NormalizedExit, format_timeout, normalize_exit
from termexec.execution.orchestrator import CommandExecutor, execute_command, is_timeout_exempt
from termexec.execution.race import ExecutionRace
from termexec.execution.report import LifecycleReporter
from termexec.execution.request import ExecutionContext, ExecutionRequest, InterruptPolicy
from termexec.execution.workdir import (
    ResolvedContext,
    WorkingDirectoryNotFound,
    directory_exists,
    resolve_working_directory,
)

__all__ = [
    "CommandExecutor",
    "ExecutionContext",
    "ExecutionRace",
    "ExecutionRequest",
    "InterruptPolicy",
    "LifecycleReporter",
    "NormalizedExit",
    "ResolvedContext",
    "WorkingDirectoryNotFound",
    "acquire_terminal",
    "directory_exists",
    "execute_command",
    "format_timeout",
    "is_timeout_exempt",
    "normalize_exit",
    "resolve_working_directory",
    "select_provider",
]
