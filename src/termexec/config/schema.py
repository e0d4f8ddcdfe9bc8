"""Configuration schema dataclasses for termexec.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults to support partial configs that merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TerminalConfig:
    """Command execution defaults.

    Example config.yaml:
        terminal:
          output_line_limit: 500
          shell_integration_disabled: false
          command_execution_timeout: 30000
          command_timeout_allowlist:
            - "npm run dev"
            - "docker compose up"
          interrupt_policy: first_output
    """

    output_line_limit: int = 500  # Lines kept after compression
    shell_integration_disabled: bool = False  # Force the plain-process provider
    command_execution_timeout: int = 0  # Milliseconds, 0 disables the timeout
    command_timeout_allowlist: list[str] = field(default_factory=list)  # Prefixes exempt from timeout
    interrupt_policy: str = "first_output"  # "first_output", "delayed", or "never"
    interrupt_delay: int = 0  # Milliseconds before asking, for "delayed"
    poll_interval: float = 0.25  # Seconds between integrated-terminal output polls


@dataclass
class HistoryConfig:
    """Command history retention."""

    max_entries: int = 100  # Per session


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-3 (error..debug), overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object.

    Aggregates all configuration sections. All fields use default factories
    to ensure partial configs work correctly with deep merging.
    """

    terminal: TerminalConfig = field(default_factory=TerminalConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Extension point for future config sections
    extra: dict[str, Any] = field(default_factory=dict)
