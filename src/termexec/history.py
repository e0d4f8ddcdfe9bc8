"""Command history built from commandExecuted events."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass

from termexec.events import COMMAND_EXECUTED, CommandExecutedEvent, EventEmitter


@dataclass(frozen=True)
class CommandRecord:
    session_id: str
    event: CommandExecutedEvent
    recorded_at: float


class CommandHistory:
    """Keeps the most recent executed commands per session."""

    def __init__(self, max_entries: int = 100) -> None:
        self._max_entries = max_entries
        self._records: dict[str, deque[CommandRecord]] = defaultdict(
            lambda: deque(maxlen=self._max_entries)
        )
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, emitter: EventEmitter) -> None:
        """Start recording commandExecuted events from emitter."""
        self.detach()
        self._unsubscribe = emitter.on(COMMAND_EXECUTED, self.record)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def record(self, session_id: str, event: CommandExecutedEvent) -> CommandRecord:
        entry = CommandRecord(session_id=session_id, event=event, recorded_at=time.time())
        self._records[session_id].append(entry)
        return entry

    def for_session(self, session_id: str) -> list[CommandRecord]:
        return list(self._records.get(session_id, ()))

    def last(self, session_id: str) -> CommandRecord | None:
        records = self._records.get(session_id)
        return records[-1] if records else None

    def failures(self, session_id: str) -> list[CommandRecord]:
        return [r for r in self.for_session(session_id) if not r.event.succeeded]

    def clear(self, session_id: str | None = None) -> None:
        if session_id is None:
            self._records.clear()
        else:
            self._records.pop(session_id, None)
