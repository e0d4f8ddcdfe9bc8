"""Caller-facing report and the single lifecycle event for an execution."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import PurePath
from typing import TYPE_CHECKING

from termexec.events import COMMAND_EXECUTED, CommandExecutedEvent
from termexec.execution.normalize import format_timeout
from termexec.logging import get_execution_logger
from termexec.terminal.output import compress_terminal_output
from termexec.terminal.result import OutcomeKind

if TYPE_CHECKING:
    from termexec.events import EventSink
    from termexec.execution.request import ExecutionRequest
    from termexec.operator import SayChannel
    from termexec.terminal.protocol import TerminalHandle
    from termexec.terminal.result import ExecutionOutcome


class LifecycleReporter:
    """Turns an ExecutionOutcome into (rejected, report) and emits its event."""

    def __init__(
        self,
        *,
        terminal: TerminalHandle,
        session_id: str,
        events: EventSink,
        say: SayChannel | None = None,
        compress: Callable[[str, int | None], str] = compress_terminal_output,
    ) -> None:
        self._terminal = terminal
        self._session_id = session_id
        self._events = events
        self._say = say
        self._compress = compress

    async def report(
        self, request: ExecutionRequest, outcome: ExecutionOutcome
    ) -> tuple[bool, str]:
        """Emit the commandExecuted event and build the report.

        The working directory is read from the terminal now, not taken from
        launch time, since the command may have changed directory.
        """
        output = self._compress(outcome.output, request.output_line_limit)

        event = CommandExecutedEvent(
            command=request.command,
            exit_code=outcome.exit_code,
            output=output,
            succeeded=outcome.succeeded,
            failure_reason=outcome.failure_reason,
        )
        self._events.emit(COMMAND_EXECUTED, self._session_id, event)
        get_execution_logger("report", request.execution_id).debug(
            "Emitted %s: %s", COMMAND_EXECUTED, outcome
        )

        cwd = PurePath(self._terminal.get_current_working_directory()).as_posix()
        location = f"in terminal within working directory '{cwd}'"

        if outcome.kind is OutcomeKind.COMPLETED:
            await self._tell("command_output", output)
            report = f"Command executed {location}. {outcome.exit_status}\nOutput:\n{output}"

        elif outcome.kind is OutcomeKind.TIMED_OUT:
            seconds = format_timeout(outcome.timeout_ms or 0)
            await self._tell("error", f"Command execution timed out after {seconds} seconds")
            report = (
                f"Command executed {location} was terminated after exceeding a "
                f"user-configured {seconds}s timeout. Do not try to re-run the command."
            )
            if output:
                report += f"\nOutput before termination:\n{output}"

        elif outcome.kind is OutcomeKind.USER_INTERRUPTED:
            await self._tell("user_feedback", outcome.feedback_text, outcome.feedback_images)
            report = f"Command is still running {location}."
            report += f"\nHere's the output so far:\n{output}\n\n" if output else "\n"
            report += (
                "The user provided the following feedback:\n"
                f"<feedback>\n{outcome.feedback_text or ''}\n</feedback>"
            )

        else:
            report = f"Command is still running {location}."
            if output:
                report += f"\nHere's the output so far:\n{output}"
            report += "\n\nYou will be updated on the terminal status and new output in the future."

        return outcome.rejected, report

    async def _tell(
        self, kind: str, text: str | None, images: list[str] | None = None
    ) -> None:
        if self._say is None:
            return
        await self._say(kind, text, images)
