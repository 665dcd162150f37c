"""Sync operations for keeping a folder in step with the file store.

Architecture:
    FolderWatcher → ReconciliationEngine ─┬─ UploadCoordinator (push)
    interval timer ───────────────────────┴─ PollReconciler (pull)

Components:
- **FolderWatcher**: Emits ChangeEvent objects for the sync folder
- **DebounceGate**: Suppresses repeat uploads of a path within 2s
- **UploadCoordinator**: Settles, debounces and de-duplicates uploads, and
  propagates local removals, under one lock
- **PollReconciler**: Downloads every listed file missing locally
- **ReconciliationEngine**: Runs the event loop and the poll loop
"""

from bytebridge.client.sync.debounce import DEFAULT_DEBOUNCE_WINDOW, DebounceGate
from bytebridge.client.sync.engine import ReconciliationEngine
from bytebridge.client.sync.ignore import DEFAULT_IGNORE_PATTERNS, IgnorePatterns
from bytebridge.client.sync.poll import PollReconciler
from bytebridge.client.sync.types import (
    ChangeEvent,
    ChangeKind,
    LocalIOError,
    PollResult,
    RemovalOutcome,
    SyncError,
    UploadOutcome,
)
from bytebridge.client.sync.upload import DEFAULT_SETTLE_DELAY, UploadCoordinator
from bytebridge.client.sync.watcher import ChangeEventHandler, FolderWatcher

__all__ = [
    # Constants
    "DEFAULT_DEBOUNCE_WINDOW",
    "DEFAULT_IGNORE_PATTERNS",
    "DEFAULT_SETTLE_DELAY",
    # Types
    "ChangeEvent",
    "ChangeKind",
    "LocalIOError",
    "PollResult",
    "RemovalOutcome",
    "SyncError",
    "UploadOutcome",
    # Components
    "ChangeEventHandler",
    "DebounceGate",
    "FolderWatcher",
    "IgnorePatterns",
    "PollReconciler",
    "ReconciliationEngine",
    "UploadCoordinator",
]
