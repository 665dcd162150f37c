"""Tests for the reconciliation engine."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from bytebridge.client.api import NotFoundError, RemoteFileRecord, StoreClient
from bytebridge.client.sync.engine import ReconciliationEngine
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
from bytebridge.core.config import SyncSettings


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def sync_folder(tmp_path: Path) -> Path:
    folder = tmp_path / "sync"
    folder.mkdir()
    return folder.resolve()


@pytest.fixture
def settings(sync_folder: Path) -> SyncSettings:
    return SyncSettings(sync_folder=sync_folder, poll_interval=60.0)


@pytest.fixture
def coordinator() -> MagicMock:
    return MagicMock(spec=UploadCoordinator)


@pytest.fixture
def reconciler() -> MagicMock:
    mock = MagicMock(spec=PollReconciler)
    mock.run_cycle.return_value = PollResult()
    return mock


@pytest.fixture
def engine(
    settings: SyncSettings, coordinator: MagicMock, reconciler: MagicMock
) -> ReconciliationEngine:
    return ReconciliationEngine(
        MagicMock(spec=StoreClient),
        settings,
        coordinator=coordinator,
        reconciler=reconciler,
    )


class TestDispatch:
    """Tests for routing local changes."""

    @pytest.mark.parametrize("kind", [ChangeKind.CREATE, ChangeKind.WRITE])
    def test_create_and_write_go_to_upload(
        self,
        engine: ReconciliationEngine,
        coordinator: MagicMock,
        sync_folder: Path,
        kind: ChangeKind,
    ) -> None:
        coordinator.handle_change.return_value = UploadOutcome.UPLOADED
        path = sync_folder / "a.txt"

        assert engine.dispatch(ChangeEvent(kind, path)) == UploadOutcome.UPLOADED
        coordinator.handle_change.assert_called_once_with(path)
        coordinator.handle_removal.assert_not_called()

    def test_remove_goes_to_removal(
        self, engine: ReconciliationEngine, coordinator: MagicMock, sync_folder: Path
    ) -> None:
        coordinator.handle_removal.return_value = RemovalOutcome.DELETED
        path = sync_folder / "a.txt"

        assert engine.dispatch(ChangeEvent(ChangeKind.REMOVE, path)) == RemovalOutcome.DELETED
        coordinator.handle_removal.assert_called_once_with(path)

    def test_rename_away_of_missing_path_is_removal(
        self, engine: ReconciliationEngine, coordinator: MagicMock, sync_folder: Path
    ) -> None:
        """Should treat a rename whose source is gone as a deletion."""
        path = sync_folder / "old.txt"

        engine.dispatch(ChangeEvent(ChangeKind.RENAME_AWAY, path))

        coordinator.handle_removal.assert_called_once_with(path)

    def test_rename_away_of_existing_path_is_ignored(
        self, engine: ReconciliationEngine, coordinator: MagicMock, sync_folder: Path
    ) -> None:
        """Should not delete remotely while the path still exists."""
        path = sync_folder / "still-here.txt"
        path.write_text("x")

        assert engine.dispatch(ChangeEvent(ChangeKind.RENAME_AWAY, path)) is None
        coordinator.handle_removal.assert_not_called()
        coordinator.handle_change.assert_not_called()

    def test_logs_time_spent_queued(
        self, engine: ReconciliationEngine, sync_folder: Path
    ) -> None:
        """Should report how long an event waited before being handled."""
        event = ChangeEvent(ChangeKind.CREATE, sync_folder / "a.txt", timestamp=time.time() - 3.0)

        with patch("bytebridge.client.sync.engine.logger") as mock_logger:
            engine.dispatch(event)

        fmt, kind, path, waited = mock_logger.debug.call_args_list[0].args
        assert "queued" in fmt
        assert (kind, path) == ("create", sync_folder / "a.txt")
        assert waited >= 3.0


class TestRunOnce:
    """Tests for a single poll cycle."""

    def test_runs_reconciler(
        self, engine: ReconciliationEngine, reconciler: MagicMock
    ) -> None:
        result = PollResult(downloaded=["a.txt"])
        reconciler.run_cycle.return_value = result

        assert engine.run_once() is result

    def test_missing_folder(self, tmp_path: Path, reconciler: MagicMock) -> None:
        """Should refuse to run against a missing folder."""
        engine = ReconciliationEngine(
            MagicMock(spec=StoreClient),
            SyncSettings(sync_folder=tmp_path / "missing"),
            reconciler=reconciler,
        )

        with pytest.raises(FileNotFoundError):
            engine.run_once()
        reconciler.run_cycle.assert_not_called()


class TestLifecycle:
    """Tests for starting and stopping the loops."""

    def test_restart_after_stop(self, sync_folder: Path) -> None:
        """Should start again with a fresh watcher after stop()."""
        client = MagicMock(spec=StoreClient)
        client.list_files.return_value = []
        client.find_file_by_name.side_effect = NotFoundError("missing", 404)
        engine = ReconciliationEngine(
            client, SyncSettings(sync_folder=sync_folder, settle_delay=0.05)
        )

        engine.start()
        engine.stop()
        engine.start()
        try:
            assert engine.is_running is True
            time.sleep(0.2)
            (sync_folder / "after-restart.txt").write_bytes(b"again")
            assert wait_until(lambda: client.upload_file.called)
        finally:
            engine.stop()

        client.upload_file.assert_called_once_with("after-restart.txt", b"again")

    def test_start_missing_folder(self, tmp_path: Path) -> None:
        engine = ReconciliationEngine(
            MagicMock(spec=StoreClient), SyncSettings(sync_folder=tmp_path / "missing")
        )

        with pytest.raises(FileNotFoundError):
            engine.start()
        assert engine.is_running is False

    def test_start_on_file(self, tmp_path: Path) -> None:
        not_a_dir = tmp_path / "file.txt"
        not_a_dir.write_text("x")
        engine = ReconciliationEngine(
            MagicMock(spec=StoreClient), SyncSettings(sync_folder=not_a_dir)
        )

        with pytest.raises(NotADirectoryError):
            engine.start()

    def test_start_stop(self, engine: ReconciliationEngine, reconciler: MagicMock) -> None:
        """Should poll immediately on start and stop cleanly."""
        engine.start()
        try:
            assert engine.is_running is True
            assert wait_until(lambda: reconciler.run_cycle.call_count >= 1)
        finally:
            engine.stop()

        assert engine.is_running is False
        assert engine.wait(timeout=0) is True

    def test_poll_loop_survives_unexpected_error(
        self, sync_folder: Path, reconciler: MagicMock
    ) -> None:
        """Should keep polling after a cycle blows up."""
        reconciler.run_cycle.side_effect = [RuntimeError("boom"), PollResult(), PollResult()]
        engine = ReconciliationEngine(
            MagicMock(spec=StoreClient),
            SyncSettings(sync_folder=sync_folder, poll_interval=0.05),
            coordinator=MagicMock(spec=UploadCoordinator),
            reconciler=reconciler,
        )

        engine.start()
        try:
            assert wait_until(lambda: reconciler.run_cycle.call_count >= 3)
        finally:
            engine.stop()

    def test_event_loop_survives_unexpected_error(
        self, settings: SyncSettings, coordinator: MagicMock, reconciler: MagicMock
    ) -> None:
        """Should keep dispatching after a handler raises."""
        pending = [
            ChangeEvent(ChangeKind.CREATE, settings.sync_folder / "a.txt"),
            ChangeEvent(ChangeKind.CREATE, settings.sync_folder / "b.txt"),
        ]

        def next_event(timeout: float | None = None) -> ChangeEvent | None:
            if pending:
                return pending.pop(0)
            time.sleep(0.01)
            return None

        watcher = MagicMock(spec=FolderWatcher)
        watcher.next_event.side_effect = next_event
        coordinator.handle_change.side_effect = [RuntimeError("boom"), UploadOutcome.UPLOADED]
        engine = ReconciliationEngine(
            MagicMock(spec=StoreClient),
            settings,
            coordinator=coordinator,
            reconciler=reconciler,
            watcher=watcher,
        )

        engine.start()
        try:
            assert wait_until(lambda: coordinator.handle_change.call_count == 2)
        finally:
            engine.stop()

        watcher.start.assert_called_once()
        watcher.stop.assert_called_once()


class TestEndToEnd:
    """Tests running the real watcher, coordinator and reconciler together."""

    def test_new_local_file_is_uploaded(self, sync_folder: Path) -> None:
        """Should upload a file written into the folder exactly once."""
        client = MagicMock(spec=StoreClient)
        client.list_files.return_value = []
        client.find_file_by_name.side_effect = NotFoundError("missing", 404)
        engine = ReconciliationEngine(
            client, SyncSettings(sync_folder=sync_folder, settle_delay=0.2)
        )

        engine.start()
        try:
            time.sleep(0.2)
            (sync_folder / "new.txt").write_bytes(b"data")
            assert wait_until(lambda: client.upload_file.called)
            time.sleep(0.5)
        finally:
            engine.stop()

        client.upload_file.assert_called_once_with("new.txt", b"data")

    def test_remote_files_are_downloaded_without_echo(self, sync_folder: Path) -> None:
        """Should fetch remote-only files and not upload them back."""
        remote = {
            "a.txt": RemoteFileRecord(id=1, name="a.txt"),
            "b.txt": RemoteFileRecord(id=2, name="b.txt"),
        }

        def find(name: str) -> RemoteFileRecord:
            if name in remote:
                return remote[name]
            raise NotFoundError(f"File ID not found for {name}", 404)

        client = MagicMock(spec=StoreClient)
        client.list_files.return_value = list(remote.values())
        client.find_file_by_name.side_effect = find
        client.iter_file_bytes.side_effect = lambda file_id: iter([f"content {file_id}".encode()])
        engine = ReconciliationEngine(
            client, SyncSettings(sync_folder=sync_folder, settle_delay=0.05)
        )

        engine.start()
        try:
            assert wait_until(
                lambda: (sync_folder / "a.txt").exists() and (sync_folder / "b.txt").exists()
            )
            time.sleep(0.5)
        finally:
            engine.stop()

        assert (sync_folder / "a.txt").read_bytes() == b"content 1"
        assert (sync_folder / "b.txt").read_bytes() == b"content 2"
        client.upload_file.assert_not_called()

    def test_local_delete_removes_remote_record(self, sync_folder: Path) -> None:
        """Should delete the store record once the local file is gone."""
        doomed = sync_folder / "doomed.txt"
        doomed.write_text("bye")
        client = MagicMock(spec=StoreClient)
        client.list_files.return_value = [RemoteFileRecord(id=7, name="doomed.txt")]
        client.find_file_by_name.return_value = RemoteFileRecord(id=7, name="doomed.txt")
        engine = ReconciliationEngine(
            client, SyncSettings(sync_folder=sync_folder, settle_delay=0.05)
        )

        engine.start()
        try:
            time.sleep(0.2)
            doomed.unlink()
            assert wait_until(lambda: client.delete_file.called)
        finally:
            engine.stop()

        client.delete_file.assert_called_once_with(7)
