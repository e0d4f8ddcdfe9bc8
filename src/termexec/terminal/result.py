"""Execution outcome dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutcomeKind(Enum):
    """Which race source resolved the call."""

    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    USER_INTERRUPTED = "user_interrupted"
    BACKGROUNDED = "backgrounded"  # Operator chose "proceed while running"


class Disposition(Enum):
    """What happened to the process handle. Decided once per call."""

    COMPLETED = "completed"  # Ran to completion on its own
    CONTINUED = "continued"  # Detached, still running
    ABORTED = "aborted"  # Forcibly terminated


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of racing one command against timeout and interruption.

    Attributes:
        kind: Which source won the race.
        disposition: What was done to the process handle.
        output: Output accumulated up to the winning moment (uncompressed).
        exit_code: Process exit code, or None if not completed or killed by signal.
        signal_name: Signal name if the process was terminated by a signal.
        core_dump_possible: Informational flag from the terminal.
        exit_status: Report fragment describing the exit (Completed only).
        failure_reason: Why the call did not succeed, None on success.
        timeout_ms: The configured timeout, for TimedOut outcomes.
        feedback_text: Operator feedback, for UserInterrupted outcomes.
        feedback_images: Images attached to the operator feedback.
    """

    kind: OutcomeKind
    disposition: Disposition
    output: str = ""
    exit_code: int | None = None
    signal_name: str | None = None
    core_dump_possible: bool = False
    exit_status: str = ""
    failure_reason: str | None = None
    timeout_ms: int | None = None
    feedback_text: str | None = None
    feedback_images: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True only for a completed command that exited with code 0."""
        return self.kind is OutcomeKind.COMPLETED and self.exit_code == 0

    @property
    def rejected(self) -> bool:
        """True when the operator interrupted the call with feedback."""
        return self.kind is OutcomeKind.USER_INTERRUPTED

    def __repr__(self) -> str:
        if self.kind is OutcomeKind.COMPLETED:
            return f"<ExecutionOutcome completed, exit={self.exit_code}, signal={self.signal_name}>"
        return f"<ExecutionOutcome {self.kind.value}, {self.disposition.value}>"
