"""Race a running command against its timeout and operator interruption.

Three sources compete to end a call:

- completion: the terminal's on_shell_execution_complete callback
- timeout: a timer armed when the command starts
- interruption: an operator answer to the "command_output" question

The first to fire decides the outcome: a source claims the race from
inside its own callback, so two sources landing in the same loop turn
cannot swap places. The timer is cancelled and a pending question is
abandoned as soon as the race settles, and callbacks that arrive
afterwards are ignored. Output lines are appended to a single buffer in
arrival order, so every outcome carries the output seen up to the moment
it won.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from termexec.events import CommandExecutionStatus
from termexec.execution.normalize import format_timeout, normalize_exit
from termexec.execution.request import InterruptPolicy
from termexec.logging import get_execution_logger
from termexec.operator import MESSAGE_RESPONSE, PROCEED_WHILE_RUNNING, AskAbandoned, AskResponse
from termexec.terminal.output import compress_terminal_output
from termexec.terminal.protocol import ExitDetails, ShellIntegrationError
from termexec.terminal.result import Disposition, ExecutionOutcome, OutcomeKind

if TYPE_CHECKING:
    from termexec.execution.request import ExecutionRequest
    from termexec.operator import AskChannel
    from termexec.terminal.protocol import ProcessHandle, TerminalHandle

# Race sources
COMPLETION = "completion"
FALLBACK = "fallback"
TIMEOUT = "timeout"
INTERRUPTION = "interruption"

FEEDBACK_REASON = "Command is still running (user provided feedback)"
BACKGROUND_REASON = "Command is still running in the background"


class ExecutionRace:
    """Drives one command to exactly one outcome.

    The race object is the callback set handed to the terminal. It is
    single use: call run() once.
    """

    def __init__(
        self,
        terminal: TerminalHandle,
        request: ExecutionRequest,
        *,
        ask: AskChannel | None = None,
        on_status: Callable[[CommandExecutionStatus], None] | None = None,
        compress: Callable[[str, int | None], str] = compress_terminal_output,
    ) -> None:
        self._terminal = terminal
        self._request = request
        self._ask = ask
        self._on_status = on_status
        self._compress = compress
        self._log = get_execution_logger("race", request.execution_id)

        self._lines: list[str] = []
        self._final_output: str | None = None
        self._settled = False
        self._asked = False
        self._disposition: Disposition | None = None
        self._ask_task: asyncio.Task[None] | None = None
        self._decision: asyncio.Future[tuple[str, Any]] | None = None

    @property
    def output(self) -> str:
        """Output accumulated so far."""
        if self._final_output:
            return self._final_output
        return "".join(self._lines)

    @property
    def disposition(self) -> Disposition | None:
        return self._disposition

    async def run(self) -> ExecutionOutcome:
        """Start the command and wait for the first source to fire.

        Raises:
            ShellIntegrationError: The integrated terminal could not run the
                command. The process is aborted and no outcome is produced.
        """
        if self._decision is not None:
            raise RuntimeError("ExecutionRace.run() may only be called once")

        loop = asyncio.get_running_loop()
        # Exists before the command starts: terminals may call back synchronously
        self._decision = loop.create_future()

        self._log.debug(
            "Running %r (timeout=%sms, policy=%s)",
            self._request.command,
            self._request.timeout_ms,
            self._request.interrupt_policy.value,
        )
        process = self._terminal.run_command(self._request.command, self)

        timer: asyncio.TimerHandle | None = None
        delayed_ask: asyncio.Task[None] | None = None
        timeout_seconds = self._request.timeout_seconds
        if timeout_seconds is not None:
            timer = loop.call_later(timeout_seconds, self._claim, TIMEOUT)
        if self._request.interrupt_policy is InterruptPolicy.DELAYED and self._ask is not None:
            delayed_ask = loop.create_task(self._ask_after_delay())

        try:
            source, value = await self._decision
        except asyncio.CancelledError:
            self._settled = True
            self._dispose(process, Disposition.ABORTED)
            raise
        finally:
            if timer is not None:
                timer.cancel()
            for task in (delayed_ask, self._ask_task):
                if task is not None and not task.done():
                    task.cancel()

        return self._resolve(process, source, value)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def _claim(self, source: str, value: Any = None) -> bool:
        """Settle the race for source unless another source already has."""
        if self._settled or self._decision is None or self._decision.done():
            return False
        self._settled = True
        self._log.debug("%r settled by %s", self._request.command, source)
        self._decision.set_result((source, value))
        return True

    def _dispose(self, process: ProcessHandle, disposition: Disposition) -> None:
        if self._disposition is not None:
            raise RuntimeError(f"Process already {self._disposition.value}")
        self._disposition = disposition
        if disposition is Disposition.ABORTED:
            process.abort()
        elif disposition is Disposition.CONTINUED:
            process.continue_()

    def _resolve(self, process: ProcessHandle, source: str, value: Any) -> ExecutionOutcome:
        if source == COMPLETION:
            self._dispose(process, Disposition.COMPLETED)
            return self._completed(value)

        if source == FALLBACK:
            self._dispose(process, Disposition.ABORTED)
            self._status("fallback")
            raise ShellIntegrationError(value)

        if source == TIMEOUT:
            self._dispose(process, Disposition.ABORTED)
            self._status("timeout")
            return self._timed_out()

        answer: AskResponse = value
        self._dispose(process, Disposition.CONTINUED)
        if answer.response == MESSAGE_RESPONSE:
            self._log.info("Operator interrupted %r with feedback", self._request.command)
            return ExecutionOutcome(
                kind=OutcomeKind.USER_INTERRUPTED,
                disposition=Disposition.CONTINUED,
                output=self.output,
                failure_reason=FEEDBACK_REASON,
                feedback_text=answer.text,
                feedback_images=list(answer.images),
            )
        self._log.info("Operator left %r running in the background", self._request.command)
        return ExecutionOutcome(
            kind=OutcomeKind.BACKGROUNDED,
            disposition=Disposition.CONTINUED,
            output=self.output,
            failure_reason=BACKGROUND_REASON,
        )

    def _completed(self, details: ExitDetails) -> ExecutionOutcome:
        normalized = normalize_exit(details)
        self._log.debug("%r completed: %s", self._request.command, normalized.exit_status)
        return ExecutionOutcome(
            kind=OutcomeKind.COMPLETED,
            disposition=Disposition.COMPLETED,
            output=self.output + normalized.output_note,
            exit_code=details.exit_code,
            signal_name=details.signal_name,
            core_dump_possible=details.core_dump_possible,
            exit_status=normalized.exit_status,
            failure_reason=normalized.failure_reason,
        )

    def _timed_out(self) -> ExecutionOutcome:
        timeout_ms = self._request.timeout_ms or 0
        self._log.warning(
            "%r timed out after %sms, aborting", self._request.command, timeout_ms
        )
        return ExecutionOutcome(
            kind=OutcomeKind.TIMED_OUT,
            disposition=Disposition.ABORTED,
            output=self.output,
            failure_reason=f"Command timed out after {format_timeout(timeout_ms)}s",
            timeout_ms=timeout_ms,
        )

    # -------------------------------------------------------------------------
    # Operator interruption
    # -------------------------------------------------------------------------

    def _start_ask(self) -> None:
        if self._ask is None or self._asked:
            return
        self._asked = True
        self._ask_task = asyncio.get_running_loop().create_task(self._ask_operator())

    async def _ask_after_delay(self) -> None:
        await asyncio.sleep(self._request.interrupt_delay_ms / 1000)
        if self._settled or self._asked:
            return
        self._asked = True
        await self._ask_operator()

    async def _ask_operator(self) -> None:
        assert self._ask is not None
        try:
            answer = await self._ask("command_output", "")
        except AskAbandoned:
            self._log.debug("Question for %r was withdrawn", self._request.command)
            return
        except Exception as e:
            # The command keeps running; only the interruption source is lost
            self._log.warning(
                "Operator channel failed while %r was running: %s", self._request.command, e
            )
            return

        if answer.response in (MESSAGE_RESPONSE, PROCEED_WHILE_RUNNING):
            self._claim(INTERRUPTION, answer)
        else:
            self._log.debug("Ignoring operator response %r", answer.response)

    # -------------------------------------------------------------------------
    # Terminal callbacks
    # -------------------------------------------------------------------------

    def on_line(self, text: str, process: ProcessHandle) -> None:
        if self._settled:
            return
        self._lines.append(text)
        if self._on_status is not None:
            self._status(
                "output",
                output=self._compress("".join(self._lines), self._request.output_line_limit),
            )
        if self._request.interrupt_policy is InterruptPolicy.FIRST_OUTPUT:
            self._start_ask()

    def on_shell_execution_started(self, pid: int | None, process: ProcessHandle) -> None:
        if self._settled:
            return
        self._log.debug("%r started (pid=%s)", self._request.command, pid)
        self._status("started", pid=pid, command=self._request.command)

    def on_completed(self, output: str | None, process: ProcessHandle) -> None:
        if self._settled:
            return
        self._final_output = output

    def on_shell_execution_complete(self, details: ExitDetails, process: ProcessHandle) -> None:
        if self._claim(COMPLETION, details):
            self._status("exited", exit_code=details.exit_code)

    def on_no_shell_integration(self, message: str, process: ProcessHandle) -> None:
        self._claim(FALLBACK, message)

    def _status(self, status: str, **fields: Any) -> None:
        if self._on_status is None:
            return
        update = CommandExecutionStatus(
            execution_id=self._request.execution_id, status=status, **fields
        )
        try:
            self._on_status(update)
        except Exception as e:
            self._log.warning("Status hook failed: %s", e)
