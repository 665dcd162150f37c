"""Shared configuration classes for bytebridge.

This module defines the settings used by the store client and the
reconciliation engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

FILES_ENDPOINT = "/api/v1/File"


@dataclass
class ServerConfig:
    """Configuration for connecting to a ByteBridge file store.

    Attributes:
        server_url: Base URL of the store (e.g., "http://localhost:5191").
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")


@dataclass
class SyncSettings:
    """Timing and filtering settings for the reconciliation engine.

    Attributes:
        sync_folder: Local folder kept in sync with the store.
        poll_interval: Seconds between two poll cycles.
        settle_delay: Seconds to wait before deciding on a local change.
        debounce_window: Seconds during which a repeated upload is suppressed.
        ignore_patterns: Extra gitignore-style patterns to skip.
    """

    sync_folder: Path
    poll_interval: float = 30.0
    settle_delay: float = 0.5
    debounce_window: float = 2.0
    ignore_patterns: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Resolve the sync folder to an absolute path."""
        self.sync_folder = Path(self.sync_folder).expanduser().resolve()
