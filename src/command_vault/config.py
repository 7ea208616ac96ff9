# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Filesystem locations and configuration loading for command-vault.

Handles:
- Data root resolution (COMMAND_VAULT_DATA_HOME, ~/.local/share)
- DB, log and user config paths
- Packaged YAML defaults loading (command_vault/defaults/system.yaml)
- User overrides merged over the defaults
- ANSI coloring constants for tagged terminal output
"""

from __future__ import annotations

import os
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml

APP_DIR = "command-vault"
DATA_HOME_ENV = "COMMAND_VAULT_DATA_HOME"
DEBUG_ENV = "COMMAND_VAULT_DEBUG"


# -----------------------
# Terminal coloring
# -----------------------

ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[38;5;69;1m",
    "magenta": "\033[38;5;126;1m",
    "yellow": "\033[38;5;226;1m",
    "reset": "\033[0m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "red": "\033[31m",
}

TAG_COLORS: dict[str, str] = {
    "RUN": "green",
    "EXIT": "magenta",
    "ERR": "red",
    "DEBUG": "yellow",
    "TAGS": "cyan",
}


def tag(name: str, color: bool = True) -> str:
    """Return ``[NAME]`` wrapped in the tag's ANSI color."""
    if not color:
        return f"[{name}]"
    code = ANSI_COLORS[TAG_COLORS.get(name, "dim")]
    return f"{code}[{name}]{ANSI_COLORS['reset']}"


# -----------------------
# Config model wrapper
# -----------------------


class YAMLConfig:
    """Simple config wrapper that implements ConfigModel protocol."""

    def __init__(self, config_dict: dict[str, Any]):
        self._config = config_dict

    @property
    def execution(self) -> dict[str, Any]:
        return self._section("execution")

    @property
    def templates(self) -> dict[str, Any]:
        return self._section("templates")

    @property
    def ui(self) -> dict[str, Any]:
        return self._section("ui")

    def _section(self, key: str) -> dict[str, Any]:
        val = self._config.get(key, {})
        return val if isinstance(val, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Nested lookup using dot-separated path.
        Example: get_path("execution.shell", "/bin/sh")
        """
        if not path:
            return default

        cur: Any = self._config
        for part in path.split("."):
            if not isinstance(cur, dict):
                return default
            if part not in cur:
                return default
            cur = cur[part]
        return cur


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base`` (mappings only)."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


# -----------------------
# Data root + paths
# -----------------------


def get_data_root() -> Path:
    """Get the data root directory.

    Resolution order:
    1. COMMAND_VAULT_DATA_HOME environment variable (if set)
    2. ~/.local/share (default)
    """
    data_home = os.getenv(DATA_HOME_ENV)
    if data_home:
        root = Path(data_home)
    else:
        root = Path.home() / ".local" / "share"

    root.mkdir(parents=True, exist_ok=True)
    return root


def app_dir(data_root: Path) -> Path:
    """<data_root>/command-vault"""
    return data_root / APP_DIR


def db_path(data_root: Path) -> Path:
    """<data_root>/command-vault/commands.db"""
    return app_dir(data_root) / "commands.db"


def logs_dir(data_root: Path) -> Path:
    """<data_root>/command-vault/logs"""
    return app_dir(data_root) / "logs"


def user_config_path(data_root: Path) -> Path:
    """<data_root>/command-vault/config.yaml"""
    return app_dir(data_root) / "config.yaml"


def debug_enabled() -> bool:
    return os.getenv(DEBUG_ENV, "").strip() not in ("", "0", "false")


# -----------------------
# YAML loading
# -----------------------


def _defaults_dir() -> Path:
    """Return the installed path to the packaged defaults directory."""
    return Path(
        importlib_resources.files("command_vault.defaults")
    )  # type: ignore[arg-type]


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file that must contain a mapping."""
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"YAML config {path} must load to a mapping/dict.")
    return data


def load_defaults_yaml(filename: str) -> dict[str, Any]:
    """
    Load a YAML file from command_vault/defaults/.
    """
    defaults_dir = _defaults_dir()
    path = defaults_dir / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Missing defaults YAML: {filename} "
            f"(looked in {defaults_dir})"
        )
    return load_yaml_file(path)


def load_system_config(data_root: Path | None = None) -> YAMLConfig:
    """
    Load packaged system.yaml, merge the user's config.yaml over it when
    present, and return a YAMLConfig wrapper.
    """
    cfg = load_defaults_yaml("system.yaml")

    root = data_root if data_root is not None else get_data_root()
    user_path = user_config_path(root)
    if user_path.exists():
        cfg = merge_config(cfg, load_yaml_file(user_path))

    return YAMLConfig(cfg)
