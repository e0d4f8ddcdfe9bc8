"""Command execution entry points.

execute_command() runs one request end to end:

    resolve working directory -> acquire terminal -> race -> report

CommandExecutor builds requests from TerminalConfig and is what most
callers use.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import TYPE_CHECKING

from termexec.execution.acquire import acquire_terminal
from termexec.execution.race import ExecutionRace
from termexec.execution.report import LifecycleReporter
from termexec.execution.request import ExecutionRequest, InterruptPolicy
from termexec.execution.workdir import WorkingDirectoryNotFound, resolve_working_directory
from termexec.logging import get_execution_logger, get_logger
from termexec.terminal.protocol import ShellIntegrationError

if TYPE_CHECKING:
    from termexec.config.schema import TerminalConfig
    from termexec.execution.request import ExecutionContext
    from termexec.execution.workdir import ResolvedContext

log = get_logger("orchestrator")


async def execute_command(
    context: ExecutionContext, request: ExecutionRequest
) -> tuple[bool, str]:
    """Execute one command and report how it ended.

    Returns:
        (rejected, report). rejected is True only when the operator
        interrupted the command with feedback.

    Raises:
        Whatever terminal acquisition raises, other than ShellIntegrationError,
        which is handled by retrying once without shell integration.
    """
    exec_log = get_execution_logger("orchestrator", request.execution_id)
    try:
        resolved = await resolve_working_directory(
            context.cwd, request.custom_cwd, context.exists
        )
    except WorkingDirectoryNotFound as e:
        exec_log.info("Not running %r: %s", request.command, e)
        return False, str(e)

    try:
        return await _execute_in_terminal(context, request, resolved)
    except ShellIntegrationError as e:
        if request.shell_integration_disabled:
            raise
        exec_log.warning("Shell integration unavailable, retrying without it: %s", e)
        if context.say is not None:
            await context.say("shell_integration_warning", str(e))
        fallback = dataclasses.replace(request, shell_integration_disabled=True)
        return await _execute_in_terminal(context, fallback, resolved)


async def _execute_in_terminal(
    context: ExecutionContext,
    request: ExecutionRequest,
    resolved: ResolvedContext,
) -> tuple[bool, str]:
    terminal = await acquire_terminal(
        context.registry, resolved, request.shell_integration_disabled, context.session_id
    )

    race = ExecutionRace(
        terminal,
        request,
        ask=context.ask,
        on_status=context.on_status,
        compress=context.compress,
    )
    outcome = await race.run()

    reporter = LifecycleReporter(
        terminal=terminal,
        session_id=context.session_id,
        events=context.events,
        say=context.say,
        compress=context.compress,
    )
    return await reporter.report(request, outcome)


def is_timeout_exempt(command: str, allowlist: list[str]) -> bool:
    """True if the command starts with one of the allowlisted prefixes."""
    trimmed = command.strip()
    return any(trimmed.startswith(prefix.strip()) for prefix in allowlist if prefix.strip())


class CommandExecutor:
    """Runs commands with defaults taken from TerminalConfig."""

    def __init__(self, *, context: ExecutionContext, config: TerminalConfig) -> None:
        """Initialize the executor.

        Args:
            context: Collaborators every execution runs against.
            config: Terminal defaults (line limit, timeout, policies).
        """
        self._context = context
        self._config = config

    @property
    def context(self) -> ExecutionContext:
        return self._context

    def build_request(
        self,
        command: str,
        *,
        execution_id: str | None = None,
        cwd: str | None = None,
        timeout_ms: int | None = None,
    ) -> ExecutionRequest:
        """Build a request, applying config defaults.

        An explicit timeout_ms wins over the configured timeout. The
        configured timeout is skipped for allowlisted commands.
        """
        config = self._config
        if timeout_ms is None:
            timeout_ms = config.command_execution_timeout
            if timeout_ms and is_timeout_exempt(command, config.command_timeout_allowlist):
                log.debug("%r is exempt from the %sms timeout", command, timeout_ms)
                timeout_ms = 0

        try:
            policy = InterruptPolicy(config.interrupt_policy)
        except ValueError:
            log.warning(
                "Unknown interrupt_policy %r, using %s",
                config.interrupt_policy,
                InterruptPolicy.FIRST_OUTPUT.value,
            )
            policy = InterruptPolicy.FIRST_OUTPUT

        return ExecutionRequest(
            command=command,
            execution_id=execution_id or uuid.uuid4().hex[:12],
            custom_cwd=cwd,
            shell_integration_disabled=config.shell_integration_disabled,
            output_line_limit=config.output_line_limit,
            timeout_ms=timeout_ms or None,
            interrupt_policy=policy,
            interrupt_delay_ms=config.interrupt_delay,
        )

    async def execute(
        self,
        command: str,
        *,
        execution_id: str | None = None,
        cwd: str | None = None,
        timeout_ms: int | None = None,
    ) -> tuple[bool, str]:
        request = self.build_request(
            command, execution_id=execution_id, cwd=cwd, timeout_ms=timeout_ms
        )
        return await execute_command(self._context, request)
