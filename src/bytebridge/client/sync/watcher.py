"""File system watcher feeding local changes to the engine.

This module provides:
- FolderWatcher: Watches the sync folder using watchdog
- ChangeEventHandler: Translates watchdog events into ChangeEvent objects

The watcher does no debouncing of its own; bursts are coalesced later by
the upload coordinator. Only files directly inside the folder are watched,
since base names are the join key with the store.
"""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from bytebridge.client.sync.ignore import SYNCIGNORE_FILE, IgnorePatterns
from bytebridge.client.sync.types import ChangeEvent, ChangeKind

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)


def _as_path(raw: str | bytes) -> Path:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return Path(raw)


class ChangeEventHandler(FileSystemEventHandler):
    """Puts a ChangeEvent on the queue for every relevant file event."""

    def __init__(
        self,
        base_path: Path,
        events: queue.Queue[ChangeEvent],
        ignore_patterns: IgnorePatterns | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            base_path: Directory being watched.
            events: Queue receiving the translated events.
            ignore_patterns: Patterns for files to ignore.
        """
        super().__init__()
        self._base_path = base_path
        self._events = events
        self._ignore = ignore_patterns or IgnorePatterns()

    def _in_folder(self, path: Path) -> bool:
        return path.parent == self._base_path

    def _emit(self, kind: ChangeKind, path: Path) -> None:
        if not self._in_folder(path) or self._ignore.should_ignore(path, self._base_path):
            return
        event = ChangeEvent(kind=kind, path=path)
        self._events.put(event)
        logger.debug("Watcher emitted %s %s", kind.value, path)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle created event."""
        if isinstance(event, FileCreatedEvent):
            self._emit(ChangeKind.CREATE, _as_path(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle modified event."""
        if isinstance(event, FileModifiedEvent):
            self._emit(ChangeKind.WRITE, _as_path(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle deleted event."""
        if isinstance(event, FileDeletedEvent):
            self._emit(ChangeKind.REMOVE, _as_path(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle moved event as a rename-away plus a create at the target."""
        if not isinstance(event, FileMovedEvent):
            return
        self._emit(ChangeKind.RENAME_AWAY, _as_path(event.src_path))
        if event.dest_path:
            self._emit(ChangeKind.CREATE, _as_path(event.dest_path))


class FolderWatcher:
    """Watches the sync folder and queues ChangeEvent objects."""

    def __init__(
        self,
        watch_path: Path,
        events: queue.Queue[ChangeEvent] | None = None,
        ignore_patterns: list[str] | None = None,
    ) -> None:
        """Initialize the folder watcher.

        Args:
            watch_path: Directory to watch.
            events: Queue to put events on (a new one if omitted).
            ignore_patterns: Additional patterns to ignore.

        Raises:
            ValueError: If watch_path is not a directory.
        """
        self._watch_path = Path(watch_path).resolve()
        if not self._watch_path.is_dir():
            raise ValueError(f"Watch path must be a directory: {watch_path}")

        self._events: queue.Queue[ChangeEvent] = events if events is not None else queue.Queue()

        self._ignore = IgnorePatterns(ignore_patterns)
        self._ignore.load_from_file(self._watch_path / SYNCIGNORE_FILE)

        self._handler = ChangeEventHandler(
            base_path=self._watch_path,
            events=self._events,
            ignore_patterns=self._ignore,
        )

        self._observer: BaseObserver = Observer()
        self._running = False

    @property
    def watch_path(self) -> Path:
        """Get the watched directory path."""
        return self._watch_path

    @property
    def events(self) -> queue.Queue[ChangeEvent]:
        """Get the event queue."""
        return self._events

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def next_event(self, timeout: float | None = None) -> ChangeEvent | None:
        """Block for the next change, or return None after ``timeout``."""
        try:
            return self._events.get(timeout=timeout)
        except queue.Empty:
            return None

    def start(self) -> None:
        """Start watching for changes."""
        if self._running:
            return

        self._observer.schedule(self._handler, str(self._watch_path), recursive=False)
        self._observer.start()
        self._running = True
        logger.info("Watching %s", self._watch_path)

    def stop(self) -> None:
        """Stop watching for changes."""
        if not self._running:
            return

        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False

    def __enter__(self) -> FolderWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()
