"""Terminal provider selection and acquisition."""

from __future__ import annotations

from typing import TYPE_CHECKING

from termexec.logging import get_logger
from termexec.terminal.protocol import ProviderKind

if TYPE_CHECKING:
    from termexec.execution.workdir import ResolvedContext
    from termexec.terminal.protocol import TerminalHandle
    from termexec.terminal.registry import TerminalSource

log = get_logger("acquire")


def select_provider(shell_integration_disabled: bool) -> ProviderKind:
    return ProviderKind.PLAIN if shell_integration_disabled else ProviderKind.INTEGRATED


async def acquire_terminal(
    registry: TerminalSource,
    resolved: ResolvedContext,
    shell_integration_disabled: bool,
    session_id: str,
) -> TerminalHandle:
    """Borrow a terminal for one execution.

    Acquisition errors propagate to the caller unchanged.
    """
    provider = select_provider(shell_integration_disabled)
    log.debug(
        "Acquiring %s terminal in %s (override=%s, session=%s)",
        provider.value,
        resolved.working_dir,
        resolved.has_override,
        session_id,
    )
    return await registry.get_or_create_terminal(
        resolved.working_dir, resolved.has_override, session_id, provider
    )
