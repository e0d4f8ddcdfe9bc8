"""Terminal pool shared across command executions.

Terminals are borrowed per call, never owned by the caller: a terminal is
available for reuse as soon as it is no longer busy.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Protocol

from termexec.logging import get_logger
from termexec.terminal.protocol import ProviderKind, ShellIntegrationError, TerminalHandle
from termexec.terminal.subprocess_terminal import SubprocessTerminal

log = get_logger("registry")

# Builds a terminal from (registry-assigned id, launch directory)
TerminalFactory = Callable[[int, str], TerminalHandle]


class TerminalSource(Protocol):
    """What the orchestrator needs from a registry."""

    async def get_or_create_terminal(
        self,
        cwd: str,
        required_cwd: bool,
        session_id: str | None,
        provider: ProviderKind,
    ) -> TerminalHandle: ...


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(os.path.normpath(a)) == os.path.normcase(os.path.normpath(b))


class TerminalRegistry:
    """Creates terminals on demand and hands out idle ones for reuse.

    The PLAIN provider is always available. The INTEGRATED provider needs a
    factory (for example one building ACPTerminal instances for a connected
    IDE); without one, requesting it raises ShellIntegrationError.
    """

    def __init__(
        self,
        *,
        integrated_factory: TerminalFactory | None = None,
        plain_factory: TerminalFactory | None = None,
    ) -> None:
        self._factories: dict[ProviderKind, TerminalFactory] = {
            ProviderKind.PLAIN: plain_factory or SubprocessTerminal,
        }
        if integrated_factory is not None:
            self._factories[ProviderKind.INTEGRATED] = integrated_factory
        self._terminals: list[TerminalHandle] = []
        self._next_id = 1

    @property
    def terminals(self) -> list[TerminalHandle]:
        return list(self._terminals)

    async def get_or_create_terminal(
        self,
        cwd: str,
        required_cwd: bool = False,
        session_id: str | None = None,
        provider: ProviderKind = ProviderKind.INTEGRATED,
    ) -> TerminalHandle:
        """Find a reusable terminal or create one.

        Preference order:
        1. Idle terminal of this provider owned by the session, in cwd
        2. Any idle terminal of this provider in cwd
        3. Any idle terminal of this provider, unless required_cwd is set
        4. A new terminal launched in cwd
        """
        idle = [t for t in self._terminals if not t.busy and t.provider is provider]
        in_cwd = [t for t in idle if _same_path(t.get_current_working_directory(), cwd)]

        terminal = None
        if session_id is not None:
            terminal = next((t for t in in_cwd if t.session_id == session_id), None)
        if terminal is None and in_cwd:
            terminal = in_cwd[0]
        if terminal is None and not required_cwd and idle:
            terminal = idle[0]

        if terminal is None:
            terminal = self._create(cwd, provider)
        else:
            log.debug("Reusing %r for session %s", terminal, session_id)

        terminal.session_id = session_id
        return terminal

    def _create(self, cwd: str, provider: ProviderKind) -> TerminalHandle:
        factory = self._factories.get(provider)
        if factory is None:
            raise ShellIntegrationError(f"No {provider.value} terminal backend is configured")
        terminal = factory(self._next_id, cwd)
        self._next_id += 1
        self._terminals.append(terminal)
        log.debug("Created %r", terminal)
        return terminal

    def release_terminals_for_session(self, session_id: str) -> int:
        """Forget session ownership so other sessions may reuse the terminals."""
        released = 0
        for terminal in self._terminals:
            if terminal.session_id == session_id:
                terminal.session_id = None
                released += 1
        return released

    def remove_idle(self) -> int:
        """Drop terminals that are not running anything."""
        before = len(self._terminals)
        self._terminals = [t for t in self._terminals if t.busy]
        return before - len(self._terminals)
