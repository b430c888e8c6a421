"""Config and session directories, and the persisted AppConfig."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from logsieve.models import AppConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.toml"


def get_config_dir() -> Path:
    """Directory holding config.toml and sessions/.

    LOGSIEVE_CONFIG_DIR wins over the platform default.
    """
    if override := os.environ.get("LOGSIEVE_CONFIG_DIR"):
        return Path(override)
    return Path(user_config_dir("logsieve"))


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE


def get_sessions_dir() -> Path:
    """Get the sessions directory, creating it if needed."""
    d = get_config_dir() / "sessions"
    d.mkdir(parents=True, exist_ok=True)
    return d


def load_config() -> AppConfig:
    """Read config.toml. A missing or invalid file yields the defaults."""
    path = get_config_path()
    if not path.exists():
        return AppConfig()
    try:
        data: dict[str, Any] = tomllib.loads(path.read_text())
        config = AppConfig.model_validate(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return AppConfig()
    if config.output_dir is not None:
        config.output_dir = config.output_dir.expanduser()
    return config


def save_config(config: AppConfig) -> None:
    """Write config.toml. Unset optional settings (output_dir) are left out of the file."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(config.model_dump(mode="json", exclude_none=True)).encode())
