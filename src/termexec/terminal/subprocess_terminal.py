"""Subprocess-based terminal for plain local shell execution."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import os
import signal
import sys
from typing import TYPE_CHECKING

from termexec.logging import get_logger
from termexec.terminal.protocol import ExitDetails, ProviderKind

if TYPE_CHECKING:
    from termexec.terminal.protocol import TerminalCallbacks

log = get_logger("terminal.subprocess")

_READ_CHUNK = 65536
_POSIX = sys.platform != "win32"


def exit_details_from_returncode(returncode: int | None) -> ExitDetails:
    """Translate an asyncio returncode into ExitDetails.

    A negative returncode means the process was killed by that signal.
    """
    if returncode is None:
        return ExitDetails()
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = f"SIG{-returncode}"
        return ExitDetails(exit_code=None, signal_name=name)
    return ExitDetails(exit_code=returncode)


class SubprocessProcess:
    """Process handle for a command running in a SubprocessTerminal."""

    def __init__(self, command: str) -> None:
        self.command = command
        self._proc: asyncio.subprocess.Process | None = None
        self._listening = True
        self._abort_requested = False
        self.task: asyncio.Task[None] | None = None

    @property
    def listening(self) -> bool:
        """False once the caller detached or aborted; callbacks stop."""
        return self._listening

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    def continue_(self) -> None:
        self._listening = False
        log.debug("Detached from %r (pid=%s)", self.command, self.pid)

    def abort(self) -> None:
        self._listening = False
        self._abort_requested = True
        self._kill()

    def attach(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc
        if self._abort_requested:
            self._kill()

    def _kill(self) -> None:
        proc = self._proc
        if proc is None or proc.returncode is not None:
            return
        log.debug("Killing %r (pid=%s)", self.command, proc.pid)
        with contextlib.suppress(ProcessLookupError):
            if _POSIX:
                # The command runs in its own session; take the whole group down
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()

    async def wait(self) -> None:
        """Wait for the background reader to finish."""
        if self.task is not None:
            await self.task


class SubprocessTerminal:
    """Run commands through the system shell with asyncio subprocess.

    This is the PLAIN provider: it has no shell integration, so its
    working directory never changes from the one it was created with.
    """

    provider = ProviderKind.PLAIN

    def __init__(
        self,
        terminal_id: int,
        cwd: str,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the subprocess terminal.

        Args:
            terminal_id: Registry-assigned identifier.
            cwd: Directory every command is launched in.
            env: Additional environment variables.
        """
        self.id = terminal_id
        self.initial_cwd = cwd
        self.session_id: str | None = None
        self._env = env
        self._current: SubprocessProcess | None = None

    @property
    def busy(self) -> bool:
        return self._current is not None

    def get_current_working_directory(self) -> str:
        return self.initial_cwd

    def run_command(self, command: str, callbacks: TerminalCallbacks) -> SubprocessProcess:
        process = SubprocessProcess(command)
        self._current = process
        process.task = asyncio.get_running_loop().create_task(
            self._run(process, callbacks), name=f"terminal-{self.id}"
        )
        return process

    async def _run(self, process: SubprocessProcess, callbacks: TerminalCallbacks) -> None:
        process_env = os.environ.copy()
        if self._env:
            process_env.update(self._env)

        chunks: list[str] = []
        details = ExitDetails()
        try:
            try:
                proc = await asyncio.create_subprocess_shell(
                    process.command,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,  # Merge stderr into stdout
                    cwd=self.initial_cwd,
                    env=process_env,
                    start_new_session=_POSIX,
                )
            except FileNotFoundError:
                # Launch directory vanished or no shell available
                chunks.append(f"Command not found: {process.command}\n")
                details = ExitDetails(exit_code=127)
                return
            except PermissionError:
                chunks.append(f"Permission denied: {process.command}\n")
                details = ExitDetails(exit_code=126)
                return
            except OSError as e:
                chunks.append(f"OS error: {e}\n")
                details = ExitDetails(exit_code=1)
                return

            process.attach(proc)
            log.debug("Started %r (pid=%s) in %s", process.command, proc.pid, self.initial_cwd)
            if process.listening:
                callbacks.on_shell_execution_started(proc.pid, process)

            assert proc.stdout is not None
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            pending = ""
            while True:
                data = await proc.stdout.read(_READ_CHUNK)
                final = not data
                pending += decoder.decode(data, final=final)
                *complete, pending = pending.split("\n")
                for line in complete:
                    self._deliver(process, callbacks, chunks, line + "\n")
                if final:
                    break
            if pending:
                self._deliver(process, callbacks, chunks, pending)

            details = exit_details_from_returncode(await proc.wait())
            log.debug("%r finished: %s", process.command, details)
        finally:
            self._current = None
            if process.listening:
                callbacks.on_completed("".join(chunks), process)
                callbacks.on_shell_execution_complete(details, process)

    @staticmethod
    def _deliver(
        process: SubprocessProcess,
        callbacks: TerminalCallbacks,
        chunks: list[str],
        line: str,
    ) -> None:
        chunks.append(line)
        if process.listening:
            callbacks.on_line(line, process)

    def __repr__(self) -> str:
        return f"<SubprocessTerminal {self.id} cwd={self.initial_cwd!r} busy={self.busy}>"
