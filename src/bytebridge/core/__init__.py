"""Core module - Shared configuration."""

from bytebridge.core.config import FILES_ENDPOINT, ServerConfig, SyncSettings

__all__ = [
    "FILES_ENDPOINT",
    "ServerConfig",
    "SyncSettings",
]
