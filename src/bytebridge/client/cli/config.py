"""Configuration utilities for ByteBridge CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

DEFAULT_SERVER_URL = "http://localhost:5191"
DEFAULT_POLL_INTERVAL = 30.0


def get_config_dir() -> Path:
    """Get the configuration directory for ByteBridge.

    Returns:
        Path to ~/.bytebridge or equivalent.
    """
    return Path.home() / ".bytebridge"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_sync_folder() -> Path:
    """Get the sync folder path.

    Returns:
        Path to the sync folder (configured or default ~/Documents/SyncFolder).
    """
    config = load_config()
    if config.get("sync_folder"):
        return Path(config["sync_folder"]).expanduser().resolve()
    return Path.home() / "Documents" / "SyncFolder"


def get_server_url() -> str:
    """Get the store base URL (configured or default)."""
    config = load_config()
    return str(config.get("server_url") or DEFAULT_SERVER_URL)


def get_poll_interval() -> float:
    """Get the poll interval in seconds (configured or default)."""
    config = load_config()
    value = config.get("poll_interval")
    if value is None:
        return DEFAULT_POLL_INTERVAL
    return float(value)
