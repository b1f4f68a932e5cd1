"""Configuration loader and validation for shh.

Loads YAML config from ~/.config/shh/config.yaml (or SHH_CONFIG env override).
Every key is optional; a missing file means all defaults.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

APP_NAME = "shh"
DEFAULT_CONFIG_DIR = Path.home() / ".config" / APP_NAME
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_CONFIG_VAR = "SHH_CONFIG"
SUPPORTED_CONFIG_VERSION = 1
DB_FILE_NAME = "hosts.db"

ON_SELECT_MODES = ("exec", "print", "cmd")


def default_data_dir() -> Path:
    """Where the host database lives when the config does not say."""
    if sys.platform.startswith("linux"):
        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            return Path(xdg) / APP_NAME
        return Path.home() / ".local" / "share" / APP_NAME
    return Path.home() / f".{APP_NAME}"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ShhConfig:
    """Top-level shh configuration."""

    version: int = SUPPORTED_CONFIG_VERSION
    data_dir: Path = field(default_factory=default_data_dir)
    history_files: list[Path] = field(default_factory=list)
    ssh_options: list[str] = field(default_factory=list)
    auto_import: bool = True
    on_select: str = "exec"
    config_path: Path = DEFAULT_CONFIG_PATH

    @property
    def db_path(self) -> Path:
        return self.data_dir / DB_FILE_NAME


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when the configuration file is invalid."""


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def get_config_path() -> Path:
    """Determine which config file to use."""
    env = os.environ.get(ENV_CONFIG_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return DEFAULT_CONFIG_PATH


def _str_list(raw: dict[str, Any], key: str, config_path: Path) -> list[str]:
    value = raw.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' in {config_path} must be a list.")
    return [str(v) for v in value]


def load_config(path: Path | None = None) -> ShhConfig:
    """Load, validate, and return ShhConfig from a YAML file."""
    config_path = path or get_config_path()

    if not config_path.exists():
        return ShhConfig(config_path=config_path)

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if raw is None:
        return ShhConfig(config_path=config_path)
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must be a YAML mapping at the top level.")

    version = raw.get("version", SUPPORTED_CONFIG_VERSION)
    if version != SUPPORTED_CONFIG_VERSION:
        raise ConfigError(
            f"Unsupported config version {version}. Expected {SUPPORTED_CONFIG_VERSION}."
        )

    data_dir_raw = raw.get("data_dir")
    data_dir = Path(str(data_dir_raw)).expanduser() if data_dir_raw else default_data_dir()

    auto_import = raw.get("auto_import", True)
    if not isinstance(auto_import, bool):
        raise ConfigError(f"'auto_import' in {config_path} must be true or false.")

    on_select = str(raw.get("on_select", "exec"))
    if on_select not in ON_SELECT_MODES:
        raise ConfigError(
            f"'on_select' must be one of {', '.join(ON_SELECT_MODES)}, got '{on_select}'."
        )

    return ShhConfig(
        version=version,
        data_dir=data_dir,
        history_files=[Path(p).expanduser() for p in _str_list(raw, "history_files", config_path)],
        ssh_options=_str_list(raw, "ssh_options", config_path),
        auto_import=auto_import,
        on_select=on_select,
        config_path=config_path,
    )


def validate_config_file(path: Path | None = None) -> tuple[bool, str]:
    """Validate a config file and return (ok, message)."""
    try:
        cfg = load_config(path)
    except ConfigError as exc:
        return False, str(exc)
    source = str(cfg.config_path) if cfg.config_path.exists() else "defaults (no config file)"
    return True, f"Config OK — database at {cfg.db_path}, loaded from {source}"
