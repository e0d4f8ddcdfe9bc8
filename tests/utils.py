"""Shared test utilities for termexec tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from termexec.terminal.protocol import ExitDetails, ProviderKind

Script = Callable[[Any, "FakeProcess"], None]


class FakeProcess:
    """Process handle that records what the orchestrator did to it."""

    def __init__(self) -> None:
        self.continue_calls = 0
        self.abort_calls = 0

    def continue_(self) -> None:
        self.continue_calls += 1

    def abort(self) -> None:
        self.abort_calls += 1


class FakeTerminal:
    """Terminal whose behavior is scripted per test.

    The script receives the callback set and the process handle when
    run_command() is called. It may call back synchronously or schedule
    callbacks on the loop.
    """

    def __init__(
        self,
        cwd: str = "/test/project",
        provider: ProviderKind = ProviderKind.INTEGRATED,
        script: Script | None = None,
    ) -> None:
        self.provider = provider
        self.session_id: str | None = None
        self.busy = False
        self.cwd = cwd
        self.cwd_queries = 0
        self.script = script
        self.process = FakeProcess()
        self.commands: list[str] = []

    def get_current_working_directory(self) -> str:
        self.cwd_queries += 1
        return self.cwd

    def run_command(self, command: str, callbacks: Any) -> FakeProcess:
        self.commands.append(command)
        if self.script is not None:
            self.script(callbacks, self.process)
        return self.process


def completes(
    output: str | None = "Command output",
    *,
    exit_code: int | None = 0,
    signal_name: str | None = None,
    core_dump_possible: bool = False,
    lines: Iterable[str] = (),
    pid: int | None = 1234,
    delay: float = 0.0,
) -> Script:
    """Script that delivers a full command lifecycle on the next loop turn."""

    def script(callbacks: Any, process: FakeProcess) -> None:
        def deliver() -> None:
            for line in lines:
                callbacks.on_line(line, process)
            callbacks.on_shell_execution_started(pid, process)
            callbacks.on_completed(output, process)
            callbacks.on_shell_execution_complete(
                ExitDetails(
                    exit_code=exit_code,
                    signal_name=signal_name,
                    core_dump_possible=core_dump_possible,
                ),
                process,
            )

        loop = asyncio.get_running_loop()
        if delay:
            loop.call_later(delay, deliver)
        else:
            loop.call_soon(deliver)

    return script


def emits_lines(*lines: str) -> Script:
    """Script that reports lines synchronously and never completes."""

    def script(callbacks: Any, process: FakeProcess) -> None:
        for line in lines:
            callbacks.on_line(line, process)

    return script


def make_registry(*terminals: FakeTerminal) -> MagicMock:
    registry = MagicMock()
    if len(terminals) == 1:
        registry.get_or_create_terminal = AsyncMock(return_value=terminals[0])
    else:
        registry.get_or_create_terminal = AsyncMock(side_effect=list(terminals))
    return registry
