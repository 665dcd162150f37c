"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, LocalIOError: Exception classes for local failures
- ChangeKind, ChangeEvent: Events emitted by the folder watcher
- UploadOutcome, RemovalOutcome: Decisions taken by the upload coordinator
- PollResult: Outcome of one poll cycle
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class SyncError(Exception):
    """Base exception for sync errors."""


class LocalIOError(SyncError):
    """A local file vanished or could not be read or written."""


class ChangeKind(Enum):
    """Kind of local filesystem change."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    # Source of a rename; only means "deleted" if the path is gone
    RENAME_AWAY = "rename_away"


@dataclass(frozen=True)
class ChangeEvent:
    """A single local change reported by the watcher."""

    kind: ChangeKind
    path: Path
    timestamp: float = field(default_factory=time.time, compare=False)


class UploadOutcome(Enum):
    """What handle_change decided for a local change."""

    UPLOADED = "uploaded"
    MISSING = "missing"
    DEBOUNCED = "debounced"
    REMOTE_PRESENT = "remote_present"
    FAILED = "failed"


class RemovalOutcome(Enum):
    """What handle_removal decided for a local removal."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class PollResult:
    """Result of a single poll cycle.

    Attributes:
        downloaded: Names written to the sync folder.
        skipped: Names already present locally (or unusable).
        errors: Per-file failures ("name: reason"); the cycle went on.
        listing_error: Set when the listing itself could not be fetched.
    """

    downloaded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    listing_error: str | None = None

    @property
    def partial_failure(self) -> bool:
        """True when some files failed but the cycle completed."""
        return self.listing_error is None and bool(self.errors)

    @property
    def ok(self) -> bool:
        """True when the listing was fetched and no file failed."""
        return self.listing_error is None and not self.errors
