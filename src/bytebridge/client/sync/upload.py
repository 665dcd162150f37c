"""Turn local changes into store uploads and deletions.

This module provides:
- UploadCoordinator: Settles, debounces and de-duplicates uploads, and
  propagates local removals, all under a single lock

Every decision (upload or delete) runs while holding the coordinator lock,
so no two decisions ever overlap, even for different files.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from bytebridge.client.api import NotFoundError, TransportError
from bytebridge.client.sync.debounce import DEFAULT_DEBOUNCE_WINDOW, DebounceGate
from bytebridge.client.sync.types import LocalIOError, RemovalOutcome, UploadOutcome

if TYPE_CHECKING:
    from bytebridge.client.api import StoreClient

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 0.5  # seconds


class UploadCoordinator:
    """Decides, for one local change, whether to push the file to the store."""

    def __init__(
        self,
        client: StoreClient,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        debounce_window: float = DEFAULT_DEBOUNCE_WINDOW,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: Store client used for lookups, uploads and deletes.
            settle_delay: Seconds to wait for an event burst to finish.
            debounce_window: Seconds during which a repeat upload is skipped.
            sleep: Sleep function (replaced in tests).
            clock: Monotonic clock used for debouncing (replaced in tests).
        """
        self._client = client
        self._settle_delay = settle_delay
        self._sleep = sleep
        self._clock = clock
        self._gate = DebounceGate(debounce_window)
        self._lock = threading.Lock()

    @property
    def gate(self) -> DebounceGate:
        """Get the debounce gate (read-only use outside the lock)."""
        return self._gate

    def handle_change(self, path: Path) -> UploadOutcome:
        """Upload ``path`` unless it is gone, debounced, or already remote.

        Args:
            path: Absolute path of the created or written file.

        Returns:
            The decision that was taken.
        """
        path = Path(path)
        with self._lock:
            # Let the rest of the save's event burst arrive
            self._sleep(self._settle_delay)

            if not path.is_file():
                logger.info("File no longer exists, skipping upload: %s", path)
                return UploadOutcome.MISSING

            if not self._gate.should_proceed(path, self._clock()):
                logger.info("Skipping duplicate upload: %s", path)
                return UploadOutcome.DEBOUNCED

            try:
                record = self._client.find_file_by_name(path.name)
            except NotFoundError:
                record = None
            except TransportError as e:
                logger.error("Could not check %s on the server: %s", path.name, e)
                return UploadOutcome.FAILED

            if record is not None and record.id > 0:
                logger.info(
                    "File already exists on the server, skipping upload: %s", path
                )
                return UploadOutcome.REMOTE_PRESENT

            try:
                outcome = self._upload(path)
            finally:
                # Recorded even on failure so a broken file is not hammered
                self._gate.record(path, self._clock())
            return outcome

    def _upload(self, path: Path) -> UploadOutcome:
        try:
            data = self._read(path)
            self._client.upload_file(path.name, data)
        except (LocalIOError, TransportError) as e:
            logger.error("Failed to upload %s: %s", path, e)
            return UploadOutcome.FAILED
        logger.info("File uploaded successfully: %s", path)
        return UploadOutcome.UPLOADED

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise LocalIOError(f"Cannot read {path}: {e}") from e

    def handle_removal(self, path: Path) -> RemovalOutcome:
        """Delete the store record matching the base name of ``path``.

        No retry and no rollback: a failed delete leaves the store diverged
        until the next removal of a file with the same name.

        Args:
            path: Absolute path of the removed file.

        Returns:
            The decision that was taken.
        """
        path = Path(path)
        with self._lock:
            try:
                record = self._client.find_file_by_name(path.name)
            except NotFoundError as e:
                logger.warning("Error finding file ID for deletion: %s", e)
                return RemovalOutcome.NOT_FOUND
            except TransportError as e:
                logger.error("Could not look up %s for deletion: %s", path.name, e)
                return RemovalOutcome.FAILED

            logger.info("Deleting file from server: %s (id %d)", record.name, record.id)
            try:
                self._client.delete_file(record.id)
            except NotFoundError:
                logger.info("File %s was already deleted on the server", record.name)
                return RemovalOutcome.NOT_FOUND
            except TransportError as e:
                logger.error("Failed to delete %s on the server: %s", record.name, e)
                return RemovalOutcome.FAILED

            logger.info("File deleted successfully from server: %s", record.name)
            return RemovalOutcome.DELETED
