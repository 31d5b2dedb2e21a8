"""Cross-platform data directory resolution."""

from __future__ import annotations

import logging
from pathlib import Path

import platformdirs

from jsonvault.config import CONFIG_FILENAME, Config

logger = logging.getLogger("jsonvault.paths")

_APP_NAME = "jsonvault"
_APP_AUTHOR = "jsonvault"


def get_data_dir() -> Path:
    """Return the platform-appropriate data directory (XDG on Linux)."""
    return Path(platformdirs.user_data_dir(_APP_NAME, _APP_AUTHOR))


# -- path helpers -----------------------------------------------------------
def get_vault_path(data_dir: Path) -> Path:
    return data_dir / Config.get_defaults(data_dir)["vault_filename"]


def get_log_path(data_dir: Path) -> Path:
    return data_dir / "jsonvault.log"


def get_config_path(data_dir: Path) -> Path:
    return data_dir / CONFIG_FILENAME
