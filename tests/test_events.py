"""Tests for lifecycle events, the emitter and command history."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from termexec.events import (
    COMMAND_EXECUTED,
    CommandExecutedEvent,
    CommandExecutionStatus,
    EventEmitter,
)
from termexec.history import CommandHistory


def make_event(command: str = "ls", succeeded: bool = True) -> CommandExecutedEvent:
    return CommandExecutedEvent(
        command=command,
        exit_code=0 if succeeded else 1,
        output="out",
        succeeded=succeeded,
        failure_reason=None if succeeded else "Exit code: 1",
    )


class TestEventModels:
    def test_serializes_with_camel_case_aliases(self):
        event = make_event(succeeded=False)

        assert event.model_dump(by_alias=True) == {
            "command": "ls",
            "exitCode": 1,
            "output": "out",
            "succeeded": False,
            "failureReason": "Exit code: 1",
        }

    def test_accepts_aliases(self):
        event = CommandExecutedEvent.model_validate(
            {"command": "ls", "exitCode": 2, "output": "", "succeeded": False}
        )

        assert event.exit_code == 2
        assert event.failure_reason is None

    def test_events_are_frozen(self):
        event = make_event()

        with pytest.raises(ValidationError):
            event.output = "changed"

    def test_status_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            CommandExecutionStatus(execution_id="1", status="paused")

    def test_status_fields(self):
        status = CommandExecutionStatus(execution_id="1", status="started", pid=99, command="ls")

        assert status.model_dump(by_alias=True, exclude_none=True) == {
            "executionId": "1",
            "status": "started",
            "pid": 99,
            "command": "ls",
        }


class TestEventEmitter:
    def test_emit_calls_listeners_in_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.on("x", lambda *args: calls.append(("first", args)))
        emitter.on("x", lambda *args: calls.append(("second", args)))

        assert emitter.emit("x", 1, 2) == 2
        assert calls == [("first", (1, 2)), ("second", (1, 2))]

    def test_emit_without_listeners(self):
        assert EventEmitter().emit("nothing") == 0

    def test_unregister(self):
        emitter = EventEmitter()
        calls = []
        unregister = emitter.on("x", calls.append)

        unregister()
        unregister()
        emitter.emit("x", "payload")

        assert calls == []
        assert emitter.listener_count("x") == 0

    def test_failing_listener_does_not_stop_delivery(self, caplog):
        emitter = EventEmitter()
        calls = []

        def broken(*args):
            raise RuntimeError("listener broke")

        emitter.on("x", broken)
        emitter.on("x", calls.append)

        with caplog.at_level("WARNING", logger="termexec.events"):
            emitter.emit("x", "payload")

        assert calls == ["payload"]
        assert "listener broke" in caplog.text


class TestCommandHistory:
    def test_records_emitted_events(self):
        emitter = EventEmitter()
        history = CommandHistory()
        history.attach(emitter)

        emitter.emit(COMMAND_EXECUTED, "s1", make_event("ls"))
        emitter.emit(COMMAND_EXECUTED, "s2", make_event("pwd"))

        assert [r.event.command for r in history.for_session("s1")] == ["ls"]
        assert history.last("s2").event.command == "pwd"
        assert history.last("s3") is None

    def test_bounded_per_session(self):
        history = CommandHistory(max_entries=2)

        for command in ("a", "b", "c"):
            history.record("s1", make_event(command))

        assert [r.event.command for r in history.for_session("s1")] == ["b", "c"]

    def test_failures(self):
        history = CommandHistory()
        history.record("s1", make_event("ok"))
        history.record("s1", make_event("bad", succeeded=False))

        assert [r.event.command for r in history.failures("s1")] == ["bad"]

    def test_detach_stops_recording(self):
        emitter = EventEmitter()
        history = CommandHistory()
        history.attach(emitter)
        history.detach()

        emitter.emit(COMMAND_EXECUTED, "s1", make_event())

        assert history.for_session("s1") == []

    def test_attach_twice_records_once(self):
        emitter = EventEmitter()
        history = CommandHistory()
        history.attach(emitter)
        history.attach(emitter)

        emitter.emit(COMMAND_EXECUTED, "s1", make_event())

        assert len(history.for_session("s1")) == 1

    def test_clear(self):
        history = CommandHistory()
        history.record("s1", make_event())
        history.record("s2", make_event())

        history.clear("s1")
        assert history.for_session("s1") == []
        assert len(history.for_session("s2")) == 1

        history.clear()
        assert history.for_session("s2") == []
