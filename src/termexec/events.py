"""Lifecycle events and execution status updates.

Payloads that leave the package are pydantic models with camelCase aliases,
so listeners can forward them as JSON with model_dump(by_alias=True).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from termexec.logging import get_logger

log = get_logger("events")

COMMAND_EXECUTED = "commandExecuted"

Listener = Callable[..., None]


class EventModel(BaseModel):
    """Base model for event payloads with populate_by_name enabled."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CommandExecutedEvent(EventModel):
    """Normalized outcome of one command, emitted once per execution."""

    command: str
    exit_code: int | None = Field(default=None, alias="exitCode")
    output: str
    succeeded: bool
    failure_reason: str | None = Field(default=None, alias="failureReason")


class CommandExecutionStatus(EventModel):
    """Progress update for an execution, keyed by execution id."""

    execution_id: str = Field(alias="executionId")
    status: Literal["started", "output", "exited", "timeout", "fallback"]
    pid: int | None = None
    command: str | None = None
    output: str | None = None
    exit_code: int | None = Field(default=None, alias="exitCode")


class EventSink(Protocol):
    """Anything that can receive lifecycle events."""

    def emit(self, event: str, *args: Any) -> Any: ...


class EventEmitter:
    """Minimal synchronous event emitter.

    Listener errors are logged and do not stop delivery to other listeners.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unregisters it."""
        self._listeners[event].append(listener)

        def unregister() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unregister

    def emit(self, event: str, *args: Any) -> int:
        """Call every listener for event. Returns how many were called."""
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                listener(*args)
            except Exception as e:
                log.warning("Listener for %s failed: %s", event, e)
        return len(listeners)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))
