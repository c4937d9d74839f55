"""Per-user config and data locations."""

from __future__ import annotations

import os
import sys
from pathlib import Path

APP_NAME = "rehook"


def _user_dir(override: str, windows_base: str, xdg_var: str, xdg_default: Path) -> Path:
    explicit = os.environ.get(override)
    if explicit:
        return Path(explicit)
    if sys.platform == "win32":
        base = os.environ.get(windows_base) or Path.home() / "AppData" / "Local"
        return Path(base) / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    return Path(os.environ.get(xdg_var) or xdg_default) / APP_NAME


def get_config_dir() -> Path:
    """Directory searched for ``config.yaml`` (``REHOOK_CONFIG_DIR`` wins)."""
    return _user_dir(
        "REHOOK_CONFIG_DIR", "APPDATA", "XDG_CONFIG_HOME", Path.home() / ".config"
    )


def get_data_dir() -> Path:
    """Default home of the database file (``REHOOK_DATA_DIR`` wins)."""
    return _user_dir(
        "REHOOK_DATA_DIR", "LOCALAPPDATA", "XDG_DATA_HOME", Path.home() / ".local" / "share"
    )


def normalize_path(path: str | Path) -> Path:
    return Path(path).expanduser().resolve()
