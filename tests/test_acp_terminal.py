"""Tests for the ACP-backed IDE terminal."""

from __future__ import annotations

import asyncio
import logging
import sys
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from termexec.config.schema import TerminalConfig
from termexec.execution import ExecutionContext, ExecutionRequest, execute_command
from termexec.terminal import TerminalRegistry
from termexec.terminal.acp_terminal import ACPTerminal, acp_terminal_factory
from termexec.terminal.protocol import ExitDetails, ProviderKind


class FakeACPClient:
    """In-memory stand-in for an ACP client connection's terminal methods."""

    def __init__(
        self,
        *,
        fail_create: Exception | None = None,
        fail_wait: Exception | None = None,
    ) -> None:
        self.fail_create = fail_create
        self.fail_wait = fail_wait
        self.output = ""
        self.exit_code: int | None = 0
        self.signal: str | None = None
        self.created: list[dict] = []
        self.killed: list[str] = []
        self.released: list[str] = []
        self._exited = asyncio.Event()

    def exit(self, exit_code: int | None = 0, signal: str | None = None) -> None:
        self.exit_code = exit_code
        self.signal = signal
        self._exited.set()

    async def create_terminal(self, **kwargs):
        if self.fail_create is not None:
            raise self.fail_create
        self.created.append(kwargs)
        return SimpleNamespace(terminal_id=f"term-{len(self.created)}")

    async def terminal_output(self, session_id, terminal_id):
        return SimpleNamespace(output=self.output, truncated=False)

    async def wait_for_terminal_exit(self, session_id, terminal_id):
        if self.fail_wait is not None:
            raise self.fail_wait
        await self._exited.wait()
        return SimpleNamespace(exit_code=self.exit_code, signal=self.signal)

    async def kill_terminal(self, session_id, terminal_id):
        self.killed.append(terminal_id)
        self.exit(None, "SIGKILL")

    async def release_terminal(self, session_id, terminal_id):
        self.released.append(terminal_id)


class RecordingCallbacks:
    def __init__(self) -> None:
        self.lines: list[str] = []
        self.output: str | None = None
        self.details: ExitDetails | None = None
        self.no_integration: str | None = None
        self.done = asyncio.Event()

    def on_line(self, text, process):
        self.lines.append(text)

    def on_shell_execution_started(self, pid, process):
        pass

    def on_completed(self, output, process):
        self.output = output

    def on_shell_execution_complete(self, details, process):
        self.details = details
        self.done.set()

    def on_no_shell_integration(self, message, process):
        self.no_integration = message
        self.done.set()


def make_terminal(client: FakeACPClient, cwd: str = "/ide/project") -> ACPTerminal:
    return ACPTerminal(1, cwd, client, "acp-session", poll_interval=0.01, output_byte_limit=4096)


class TestACPTerminal:
    @pytest.mark.asyncio
    async def test_creates_terminal_in_cwd(self):
        client = FakeACPClient()
        client.exit(0)
        callbacks = RecordingCallbacks()

        make_terminal(client).run_command("make build", callbacks)
        await asyncio.wait_for(callbacks.done.wait(), timeout=5)

        assert client.created == [
            {
                "command": "make build",
                "session_id": "acp-session",
                "cwd": "/ide/project",
                "output_byte_limit": 4096,
            }
        ]
        assert client.released == ["term-1"]

    @pytest.mark.asyncio
    async def test_streams_new_lines_and_flushes_partial_line(self):
        client = FakeACPClient()
        callbacks = RecordingCallbacks()
        terminal = make_terminal(client)

        terminal.run_command("build", callbacks)
        client.output = "step 1\nstep"
        await asyncio.sleep(0.05)
        assert callbacks.lines == ["step 1\n"]
        assert terminal.busy is True

        client.output = "step 1\nstep 2\ndone"
        client.exit(0)
        await asyncio.wait_for(callbacks.done.wait(), timeout=5)

        assert callbacks.lines == ["step 1\n", "step 2\n", "done"]
        assert callbacks.output == "step 1\nstep 2\ndone"
        assert callbacks.details == ExitDetails(exit_code=0)
        assert terminal.busy is False

    @pytest.mark.asyncio
    async def test_signal_exit(self):
        client = FakeACPClient()
        client.exit(None, "SIGTERM")
        callbacks = RecordingCallbacks()

        make_terminal(client).run_command("serve", callbacks)
        await asyncio.wait_for(callbacks.done.wait(), timeout=5)

        assert callbacks.details == ExitDetails(exit_code=None, signal_name="SIGTERM")

    @pytest.mark.asyncio
    async def test_create_failure_reports_missing_integration(self):
        client = FakeACPClient(fail_create=RuntimeError("Method not found"))
        callbacks = RecordingCallbacks()
        terminal = make_terminal(client)

        terminal.run_command("ls", callbacks)
        await asyncio.wait_for(callbacks.done.wait(), timeout=5)

        assert "Method not found" in callbacks.no_integration
        assert callbacks.details is None
        assert terminal.busy is False

    @pytest.mark.asyncio
    async def test_abort_kills_ide_terminal(self):
        client = FakeACPClient()
        callbacks = RecordingCallbacks()
        terminal = make_terminal(client)

        process = terminal.run_command("sleep 100", callbacks)
        await asyncio.sleep(0.03)
        process.abort()
        await asyncio.wait_for(process.wait(), timeout=5)

        assert client.killed == ["term-1"]
        assert client.released == ["term-1"]
        assert callbacks.details is None

    @pytest.mark.asyncio
    async def test_lost_exit_status_is_logged_and_reported_unknown(self, caplog):
        client = FakeACPClient(fail_wait=ConnectionError("connection closed"))
        client.output = "partial\n"
        callbacks = RecordingCallbacks()
        terminal = make_terminal(client)

        with caplog.at_level(logging.WARNING, logger="termexec"):
            process = terminal.run_command("build", callbacks)
            await asyncio.wait_for(callbacks.done.wait(), timeout=5)
            await process.wait()

        assert callbacks.details == ExitDetails()
        assert callbacks.lines == ["partial\n"]
        assert client.released == ["term-1"]
        assert terminal.busy is False
        assert "connection closed" in caplog.text
        assert process.task.exception() is None

    def test_factory_uses_configured_poll_interval(self):
        factory = acp_terminal_factory(
            FakeACPClient(), "acp-session", TerminalConfig(poll_interval=0.5)
        )

        terminal = factory(3, "/ide/project")

        assert isinstance(terminal, ACPTerminal)
        assert terminal.id == 3
        assert terminal.initial_cwd == "/ide/project"
        assert terminal._poll_interval == 0.5

    def test_cwd_is_launch_directory(self):
        terminal = make_terminal(FakeACPClient(), cwd="/somewhere")

        assert terminal.get_current_working_directory() == "/somewhere"
        assert terminal.provider is ProviderKind.INTEGRATED


class TestACPExecution:
    """execute_command with the IDE terminal as the integrated provider."""

    def make_context(self, client, cwd, say=None) -> ExecutionContext:
        registry = TerminalRegistry(
            integrated_factory=acp_terminal_factory(
                client, "acp-session", TerminalConfig(poll_interval=0.01)
            )
        )
        return ExecutionContext(
            cwd=cwd,
            session_id="task-1",
            registry=registry,
            events=MagicMock(),
            say=say,
        )

    @pytest.mark.asyncio
    async def test_success_report(self):
        client = FakeACPClient()
        client.output = "compiled 3 files\n"
        client.exit(0)
        context = self.make_context(client, "/ide/project")
        request = ExecutionRequest(command="make", execution_id="e1")

        rejected, report = await execute_command(context, request)

        assert rejected is False
        assert "within working directory '/ide/project'" in report
        assert "Exit code: 0" in report
        assert "compiled 3 files" in report

    @pytest.mark.asyncio
    async def test_timeout_kills_ide_terminal(self):
        client = FakeACPClient()
        client.output = "waiting\n"
        context = self.make_context(client, "/ide/project")
        request = ExecutionRequest(command="sleep 100", execution_id="e2", timeout_ms=100)

        _, report = await execute_command(context, request)
        await asyncio.sleep(0.05)

        assert "terminated after exceeding a user-configured 0.1s timeout" in report
        assert client.killed == ["term-1"]

    @pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX sh syntax")
    @pytest.mark.asyncio
    async def test_client_without_terminals_falls_back_to_subprocess(self, tmp_path):
        client = FakeACPClient(fail_create=RuntimeError("Method not found: terminal/create"))
        say = AsyncMock()
        context = self.make_context(client, str(tmp_path), say=say)
        request = ExecutionRequest(command="echo from-subprocess", execution_id="e3")

        _, report = await execute_command(context, request)

        assert "Exit code: 0" in report
        assert "from-subprocess" in report
        kinds = [c.args[0] for c in say.await_args_list]
        assert kinds[0] == "shell_integration_warning"
        providers = [t.provider for t in context.registry.terminals]
        assert providers == [ProviderKind.INTEGRATED, ProviderKind.PLAIN]
