"""Reconciliation engine coordinating the push and pull paths.

This module provides:
- ReconciliationEngine: Runs the event-driven upload path and the
  interval-driven poll path as two independent threads

Both paths talk to the store on their own and may race on the same name.
The only shared synchronization is the UploadCoordinator lock, which the
poll path never takes.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from bytebridge.client.sync.poll import PollReconciler
from bytebridge.client.sync.types import (
    ChangeEvent,
    ChangeKind,
    PollResult,
    RemovalOutcome,
    UploadOutcome,
)
from bytebridge.client.sync.upload import UploadCoordinator
from bytebridge.client.sync.watcher import FolderWatcher

if TYPE_CHECKING:
    from bytebridge.client.api import StoreClient
    from bytebridge.core.config import SyncSettings

logger = logging.getLogger(__name__)

# How long the event loop blocks before re-checking the stop flag
EVENT_WAIT_TIMEOUT = 1.0


class ReconciliationEngine:
    """Owns the two sync loops and the components they share.

    Usage:
        engine = ReconciliationEngine(client, settings)
        engine.start()
        ...
        engine.stop()
    """

    def __init__(
        self,
        client: StoreClient,
        settings: SyncSettings,
        coordinator: UploadCoordinator | None = None,
        reconciler: PollReconciler | None = None,
        watcher: FolderWatcher | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            client: Store client shared by both paths.
            settings: Folder, timing and ignore settings.
            coordinator: Upload coordinator (built from settings if omitted).
            reconciler: Poll reconciler (built from settings if omitted).
            watcher: Folder watcher (a fresh one is built on every start()
                if omitted; a given watcher can only be started once).
        """
        self._client = client
        self._settings = settings
        self._sync_folder = settings.sync_folder
        self._coordinator = coordinator or UploadCoordinator(
            client,
            settle_delay=settings.settle_delay,
            debounce_window=settings.debounce_window,
        )
        self._reconciler = reconciler or PollReconciler(client, self._sync_folder)
        self._watcher = watcher
        # A watchdog observer cannot be restarted, so owned watchers are rebuilt
        self._owns_watcher = watcher is None

        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._running = False

    @property
    def coordinator(self) -> UploadCoordinator:
        """Get the upload coordinator."""
        return self._coordinator

    @property
    def reconciler(self) -> PollReconciler:
        """Get the poll reconciler."""
        return self._reconciler

    @property
    def is_running(self) -> bool:
        """Check if both loops have been started and not stopped."""
        return self._running

    def _check_folder(self) -> None:
        if not self._sync_folder.exists():
            raise FileNotFoundError(f"Sync folder does not exist: {self._sync_folder}")
        if not self._sync_folder.is_dir():
            raise NotADirectoryError(f"Sync folder is not a directory: {self._sync_folder}")

    def start(self) -> None:
        """Start the event loop and the poll loop.

        Raises:
            FileNotFoundError: If the sync folder is missing.
            NotADirectoryError: If the sync folder is not a directory.
            OSError: If the watcher cannot attach to the folder.
        """
        if self._running:
            logger.warning("Engine already running")
            return

        self._check_folder()
        watcher = self._watcher
        if self._owns_watcher or watcher is None:
            watcher = FolderWatcher(
                self._sync_folder,
                ignore_patterns=self._settings.ignore_patterns,
            )
            self._watcher = watcher
        watcher.start()

        self._stop_event.clear()
        self._threads = [
            threading.Thread(target=self._event_loop, name="bytebridge-events", daemon=True),
            threading.Thread(target=self._poll_loop, name="bytebridge-poll", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        self._running = True
        logger.info(
            "Engine started on %s (poll every %.0fs)",
            self._sync_folder,
            self._settings.poll_interval,
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Stop both loops and the watcher.

        Args:
            timeout: Maximum time to wait for each thread.
        """
        if not self._running:
            return

        self._stop_event.set()
        if self._watcher is not None:
            self._watcher.stop()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []
        self._running = False
        logger.info("Engine stopped")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stop() is called or ``timeout`` elapses.

        Returns:
            True if the engine was stopped.
        """
        return self._stop_event.wait(timeout)

    def run_once(self) -> PollResult:
        """Run a single poll cycle in the calling thread."""
        self._check_folder()
        return self._reconciler.run_cycle()

    def dispatch(self, event: ChangeEvent) -> UploadOutcome | RemovalOutcome | None:
        """Route one local change to the matching coordinator operation.

        Returns:
            The coordinator's decision, or None if the event was dropped.
        """
        logger.debug(
            "Dispatching %s for %s (queued %.2fs)",
            event.kind.value,
            event.path,
            time.time() - event.timestamp,
        )
        if event.kind in (ChangeKind.CREATE, ChangeKind.WRITE):
            logger.info("Detected change in: %s", event.path)
            return self._coordinator.handle_change(event.path)

        if event.kind == ChangeKind.REMOVE:
            logger.info("Detected deletion of: %s", event.path)
            return self._coordinator.handle_removal(event.path)

        if event.kind == ChangeKind.RENAME_AWAY:
            # A rename only counts as a deletion once the old path is gone
            if event.path.exists():
                logger.debug("Rename source still exists, ignoring: %s", event.path)
                return None
            logger.info("Detected possible deletion (rename event): %s", event.path)
            return self._coordinator.handle_removal(event.path)

        return None

    def _event_loop(self) -> None:
        watcher = self._watcher
        if watcher is None:
            return
        while not self._stop_event.is_set():
            event = watcher.next_event(timeout=EVENT_WAIT_TIMEOUT)
            if event is None:
                continue
            try:
                self.dispatch(event)
            except Exception:
                logger.exception("Unexpected error handling %s", event.path)

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                result = self._reconciler.run_cycle()
                if result.downloaded or result.errors:
                    logger.info(
                        "Poll cycle: %d downloaded, %d errors",
                        len(result.downloaded),
                        len(result.errors),
                    )
            except Exception:
                logger.exception("Unexpected error during poll cycle")
            self._stop_event.wait(self._settings.poll_interval)
