"""Listing-driven download of files missing locally.

This module provides:
- PollReconciler: One poll cycle compares the full remote listing with the
  sync folder and downloads every file that is absent locally

This is a presence sync only: a local file with the same name as a remote
record is never refreshed, even if the remote copy changed.
"""

from __future__ import annotations

import contextlib
import logging
import secrets
from pathlib import Path
from typing import TYPE_CHECKING

from bytebridge.client.api import NotFoundError, TransportError
from bytebridge.client.sync.types import LocalIOError, PollResult

if TYPE_CHECKING:
    from bytebridge.client.api import RemoteFileRecord, StoreClient

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


def temp_name_for(name: str) -> str:
    """Build a hidden, randomized temp file name for downloading ``name``.

    The name matches the watcher's ``*.tmp`` ignore pattern and is never
    ``<name>.tmp``, which may be a real file in the sync folder.
    """
    return f".{name}.{secrets.token_hex(4)}{TEMP_SUFFIX}"


def is_plain_name(name: str) -> bool:
    """Check that a remote name is a bare file name safe to join to the folder."""
    if not name or name in (".", ".."):
        return False
    return "/" not in name and "\\" not in name and "\x00" not in name


class PollReconciler:
    """Brings the sync folder up to date with everything the store lists."""

    def __init__(self, client: StoreClient, sync_folder: Path) -> None:
        """Initialize the reconciler.

        Args:
            client: Store client used for listing and downloads.
            sync_folder: Folder where missing files are written.
        """
        self._client = client
        self._sync_folder = Path(sync_folder)

    @property
    def sync_folder(self) -> Path:
        """Get the sync folder."""
        return self._sync_folder

    def exists_locally(self, name: str) -> bool:
        """Check if a file with this base name exists in the sync folder."""
        return (self._sync_folder / name).exists()

    def run_cycle(self) -> PollResult:
        """Run one fetch-and-compare pass.

        Returns:
            PollResult listing what was downloaded, skipped and what failed.
        """
        result = PollResult()

        try:
            records = self._client.list_files()
        except TransportError as e:
            logger.error("Error fetching files: %s", e)
            result.listing_error = str(e)
            return result

        for record in records:
            if not is_plain_name(record.name):
                logger.warning(
                    "Skipping remote file %d with unusable name %r",
                    record.id,
                    record.name,
                )
                result.skipped.append(record.name)
                continue

            if self.exists_locally(record.name):
                logger.debug("File already exists locally: %s", record.name)
                result.skipped.append(record.name)
                continue

            logger.info(
                "File not found locally, downloading: %d %s", record.id, record.name
            )
            try:
                self.download(record)
            except (NotFoundError, TransportError, LocalIOError) as e:
                logger.error("Error downloading file %s: %s", record.name, e)
                result.errors.append(f"{record.name}: {e}")
                continue
            result.downloaded.append(record.name)

        return result

    def download(self, record: RemoteFileRecord) -> Path:
        """Download a record into the sync folder with an atomic rename.

        Bytes are streamed to a hidden temp file first (see temp_name_for())
        so that a partial download never appears as present.

        Args:
            record: Remote record to fetch.

        Returns:
            Path of the written file.

        Raises:
            NotFoundError: If the store no longer has the file.
            TransportError: On network failure or bad status.
            LocalIOError: If the file cannot be written.
        """
        local_path = self._sync_folder / record.name
        tmp_path = self._sync_folder / temp_name_for(record.name)

        # Exclusive create: never truncate a file that is already there
        try:
            f = open(tmp_path, "xb")
        except OSError as e:
            raise LocalIOError(f"Failed to save file {record.name}: {e}") from e

        try:
            with f:
                for chunk in self._client.iter_file_bytes(record.id):
                    f.write(chunk)
            tmp_path.replace(local_path)
        except OSError as e:
            self._discard(tmp_path)
            raise LocalIOError(f"Failed to save file {record.name}: {e}") from e
        except Exception:
            self._discard(tmp_path)
            raise

        logger.info("Downloaded %s", record.name)
        return local_path

    @staticmethod
    def _discard(tmp_path: Path) -> None:
        if tmp_path.exists():
            with contextlib.suppress(OSError):
                tmp_path.unlink()
