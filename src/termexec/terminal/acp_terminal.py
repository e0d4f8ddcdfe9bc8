"""ACP-based terminal for IDE terminal execution.

This is the INTEGRATED provider: commands run in the IDE's own terminal
through the Agent Client Protocol terminal/* methods. Output is polled
while the command runs so new lines reach the caller as they appear.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

from termexec.config import get_config
from termexec.logging import get_logger
from termexec.terminal.protocol import ExitDetails, ProviderKind

if TYPE_CHECKING:
    from acp.interfaces import Client

    from termexec.config.schema import TerminalConfig
    from termexec.terminal.protocol import TerminalCallbacks
    from termexec.terminal.registry import TerminalFactory

log = get_logger("terminal.acp")


def _exit_details(response: Any) -> ExitDetails:
    """Read exit code and signal from a wait_for_terminal_exit response."""
    exit_code = getattr(response, "exit_code", None)
    signal_name = getattr(response, "signal", None)
    if signal_name:
        return ExitDetails(exit_code=None, signal_name=signal_name)
    return ExitDetails(exit_code=exit_code)


class ACPProcess:
    """Process handle for a command running in an IDE terminal."""

    def __init__(self, terminal: ACPTerminal, command: str) -> None:
        self._terminal = terminal
        self.command = command
        self.terminal_id: str | None = None
        self._listening = True
        self._abort_requested = False
        self.task: asyncio.Task[None] | None = None

    @property
    def listening(self) -> bool:
        return self._listening

    def continue_(self) -> None:
        self._listening = False
        log.debug("Detached from IDE terminal %s", self.terminal_id)

    def abort(self) -> None:
        self._listening = False
        self._abort_requested = True
        if self.terminal_id is not None:
            asyncio.get_running_loop().create_task(self._terminal.kill(self.terminal_id))

    @property
    def abort_requested(self) -> bool:
        return self._abort_requested

    async def wait(self) -> None:
        if self.task is not None:
            await self.task


class ACPTerminal:
    """Execute shell commands using ACP terminal/* methods."""

    provider = ProviderKind.INTEGRATED

    def __init__(
        self,
        terminal_id: int,
        cwd: str,
        client: Client,
        acp_session_id: str,
        poll_interval: float = 0.25,
        output_byte_limit: int | None = None,
    ) -> None:
        """Initialize the ACP terminal.

        Args:
            terminal_id: Registry-assigned identifier.
            cwd: Directory commands are launched in.
            client: ACP client connection for terminal methods.
            acp_session_id: ACP session the IDE terminals belong to.
            poll_interval: Seconds between output polls.
            output_byte_limit: Byte limit the IDE keeps per terminal.
        """
        self.id = terminal_id
        self.initial_cwd = cwd
        self.session_id: str | None = None
        self._client = client
        self._acp_session_id = acp_session_id
        self._poll_interval = poll_interval
        self._output_byte_limit = output_byte_limit
        self._current: ACPProcess | None = None

    @property
    def busy(self) -> bool:
        return self._current is not None

    def get_current_working_directory(self) -> str:
        # ACP does not report directory changes made by the command
        return self.initial_cwd

    def run_command(self, command: str, callbacks: TerminalCallbacks) -> ACPProcess:
        process = ACPProcess(self, command)
        self._current = process
        process.task = asyncio.get_running_loop().create_task(
            self._run(process, callbacks), name=f"acp-terminal-{self.id}"
        )
        return process

    async def kill(self, terminal_id: str) -> None:
        with contextlib.suppress(Exception):
            await self._client.kill_terminal(
                session_id=self._acp_session_id, terminal_id=terminal_id
            )

    async def _run(self, process: ACPProcess, callbacks: TerminalCallbacks) -> None:
        try:
            response = await self._client.create_terminal(
                command=process.command,
                session_id=self._acp_session_id,
                cwd=self.initial_cwd,
                output_byte_limit=self._output_byte_limit,
            )
        except Exception as e:
            # Client without terminal support: let the caller fall back
            self._current = None
            log.warning("IDE terminal unavailable: %s", e)
            if process.listening:
                callbacks.on_no_shell_integration(f"IDE terminal unavailable: {e}", process)
            return

        terminal_id: str = response.terminal_id
        process.terminal_id = terminal_id
        if process.abort_requested:
            await self.kill(terminal_id)

        if process.listening:
            callbacks.on_shell_execution_started(None, process)

        seen = ""
        details = ExitDetails()
        try:
            exit_task = asyncio.ensure_future(
                self._client.wait_for_terminal_exit(
                    session_id=self._acp_session_id, terminal_id=terminal_id
                )
            )
            try:
                while True:
                    await asyncio.wait({exit_task}, timeout=self._poll_interval)
                    final = exit_task.done()
                    seen = await self._poll_output(
                        process, callbacks, terminal_id, seen, final=final
                    )
                    if final:
                        break
                details = _exit_details(exit_task.result())
            except Exception as e:
                # Exit status unknown; the caller reports it as undefined
                log.warning("Lost IDE terminal %s: %s", terminal_id, e)
            finally:
                if not exit_task.done():
                    exit_task.cancel()
        finally:
            self._current = None
            with contextlib.suppress(Exception):
                await self._client.release_terminal(
                    session_id=self._acp_session_id, terminal_id=terminal_id
                )
            if process.listening:
                callbacks.on_completed(seen, process)
                callbacks.on_shell_execution_complete(details, process)

    async def _poll_output(
        self,
        process: ACPProcess,
        callbacks: TerminalCallbacks,
        terminal_id: str,
        seen: str,
        final: bool = False,
    ) -> str:
        """Fetch terminal output and report complete lines not yet seen.

        A trailing partial line is held back until the final poll.
        """
        response = await self._client.terminal_output(
            session_id=self._acp_session_id, terminal_id=terminal_id
        )
        output: str = response.output or ""
        if not output.startswith(seen):
            # The IDE truncated its buffer; report everything it still has
            seen = ""
        fresh = output[len(seen):]
        cut = fresh.rfind("\n") + 1
        if final:
            cut = len(fresh)
        for line in fresh[:cut].splitlines(keepends=True):
            if process.listening:
                callbacks.on_line(line, process)
        return seen + fresh[:cut]

    def __repr__(self) -> str:
        return f"<ACPTerminal {self.id} cwd={self.initial_cwd!r} busy={self.busy}>"


def acp_terminal_factory(
    client: Client,
    acp_session_id: str,
    config: TerminalConfig | None = None,
    output_byte_limit: int | None = None,
) -> TerminalFactory:
    """Integrated-terminal factory for TerminalRegistry.

    Output polling follows config.poll_interval (the global terminal config
    when config is None).
    """
    poll_interval = (config or get_config().terminal).poll_interval

    def factory(terminal_id: int, cwd: str) -> ACPTerminal:
        return ACPTerminal(
            terminal_id,
            cwd,
            client,
            acp_session_id,
            poll_interval=poll_interval,
            output_byte_limit=output_byte_limit,
        )

    return factory
