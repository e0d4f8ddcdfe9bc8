"""Configuration management for termexec.

Hierarchical YAML configuration merged from system, user and project files,
with environment variable overrides on top.

Example usage:
    from termexec.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.terminal.command_execution_timeout)
"""

from termexec.config.loader import (
    deep_merge,
    get_config,
    load_config,
    merge_configs,
    reset_config,
)
from termexec.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from termexec.config.schema import Config, HistoryConfig, LoggingConfig, TerminalConfig

__all__ = [
    "Config",
    "TerminalConfig",
    "HistoryConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    "reset_config",
    "deep_merge",
    "merge_configs",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
