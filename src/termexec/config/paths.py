"""Config file locations.

- System: /etc/termexec/config.yaml (%PROGRAMDATA%\\termexec on Windows)
- User: $XDG_CONFIG_HOME/termexec, ~/.config/termexec, or ~/.termexec
  (%APPDATA%\\termexec on Windows)
- Project: $project_root/.termexec/config.yaml
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "termexec"
PROJECT_DIR = ".termexec"


def get_system_config_path() -> Path | None:
    if sys.platform == "win32":
        program_data = os.environ.get("PROGRAMDATA")
        return Path(program_data) / APP_NAME / CONFIG_FILENAME if program_data else None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        return Path(app_data) / APP_NAME / CONFIG_FILENAME if app_data else None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_NAME / CONFIG_FILENAME
    return home / PROJECT_DIR / CONFIG_FILENAME


def get_project_config_path(project_root: str) -> Path:
    return Path(project_root) / PROJECT_DIR / CONFIG_FILENAME


def get_config_paths(project_root: str | None = None) -> list[Path]:
    """Config paths from lowest to highest priority.

    Later paths override earlier ones when merging. Files may not exist.
    """
    candidates = [get_system_config_path(), get_user_config_path()]
    if project_root:
        candidates.append(get_project_config_path(project_root))
    return [path for path in candidates if path is not None]
