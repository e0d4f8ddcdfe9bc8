"""Root pytest configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from termexec.config import reset_config
from termexec.execution import ExecutionContext
from termexec.logging import reset_logging
from tests.utils import FakeTerminal, make_registry

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def events() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_context(events: MagicMock) -> Callable[..., ExecutionContext]:
    """Build an ExecutionContext around one or more fake terminals."""

    def factory(*terminals: FakeTerminal, **overrides: Any) -> ExecutionContext:
        fields: dict[str, Any] = {
            "cwd": "/test/project",
            "session_id": "test-task-123",
            "registry": make_registry(*terminals),
            "events": events,
            "say": AsyncMock(),
            "exists": AsyncMock(return_value=True),
        }
        fields.update(overrides)
        return ExecutionContext(**fields)

    return factory


@pytest.fixture(autouse=True)
def _isolated_state():
    yield
    reset_logging()
    reset_config()
