"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Cascading merge of system, user and project files
- Environment variable overrides
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from termexec.config.paths import get_config_paths
from termexec.config.schema import Config, HistoryConfig, LoggingConfig, TerminalConfig

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("termexec.config")

_cached_config: Config | None = None

_TRUTHY = {"1", "true", "yes", "on"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base.

    Nested dicts merge recursively, lists and scalars are replaced, and
    None in override leaves the base value alone.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge configs left to right (later overrides earlier)."""
    merged: dict[str, Any] = {}
    for config in configs:
        if config:
            merged = deep_merge(merged, config)
    return merged


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables (highest priority)."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("TERMEXEC_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    timeout = os.environ.get("TERMEXEC_COMMAND_TIMEOUT")
    if timeout:
        try:
            overrides.setdefault("terminal", {})["command_execution_timeout"] = int(timeout)
        except ValueError:
            _log.warning("Ignoring non-integer TERMEXEC_COMMAND_TIMEOUT=%r", timeout)

    disabled = os.environ.get("TERMEXEC_SHELL_INTEGRATION_DISABLED")
    if disabled:
        overrides.setdefault("terminal", {})["shell_integration_disabled"] = (
            disabled.strip().lower() in _TRUTHY
        )

    return overrides


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    terminal_data = data.get("terminal") or {}
    defaults = TerminalConfig()
    allowlist = terminal_data.get("command_timeout_allowlist") or []
    terminal = TerminalConfig(
        output_line_limit=int(terminal_data.get("output_line_limit", defaults.output_line_limit)),
        shell_integration_disabled=bool(
            terminal_data.get("shell_integration_disabled", defaults.shell_integration_disabled)
        ),
        command_execution_timeout=int(
            terminal_data.get("command_execution_timeout", defaults.command_execution_timeout)
        ),
        command_timeout_allowlist=[p for p in allowlist if isinstance(p, str) and p.strip()],
        interrupt_policy=str(terminal_data.get("interrupt_policy", defaults.interrupt_policy)),
        interrupt_delay=int(terminal_data.get("interrupt_delay", defaults.interrupt_delay)),
        poll_interval=float(terminal_data.get("poll_interval", defaults.poll_interval)),
    )

    history_data = data.get("history") or {}
    history = HistoryConfig(
        max_entries=int(history_data.get("max_entries", HistoryConfig().max_entries)),
    )

    log_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"terminal", "history", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(terminal=terminal, history=history, logging=logging_config, extra=extra)


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($project_root/.termexec/config.yaml)
    3. User config
    4. System config

    Only the global config (no project_root) is cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    layers: list[dict[str, Any]] = []
    for path in get_config_paths(project_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            layers.append(layer)
    layers.append(env_overrides())

    config = dict_to_config(merge_configs(*layers))

    if project_root is None:
        _cached_config = config
    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config (used by tests)."""
    global _cached_config
    _cached_config = None
