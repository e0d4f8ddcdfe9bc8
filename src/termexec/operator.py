"""Operator-facing ask/say channel contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

# Ask responses the orchestrator understands
MESSAGE_RESPONSE = "messageResponse"  # Operator typed feedback
PROCEED_WHILE_RUNNING = "yesButtonClicked"  # Operator let the command run on


class AskAbandoned(Exception):
    """Raised by an ask channel when a pending question is withdrawn."""


@dataclass
class AskResponse:
    """Operator answer to a question."""

    response: str
    text: str | None = None
    images: list[str] = field(default_factory=list)


class AskChannel(Protocol):
    async def __call__(self, kind: str, payload: str) -> AskResponse: ...


class SayChannel(Protocol):
    async def __call__(
        self, kind: str, text: str | None = None, images: list[str] | None = None
    ) -> None: ...
