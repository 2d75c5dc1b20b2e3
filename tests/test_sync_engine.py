"""Tests for the sync engine orchestration."""

import sys
import os
from unittest.mock import AsyncMock, patch

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from drive_sync.config import SyncConfig
from drive_sync.core import SyncAction, SyncEngine, SyncEvent, SyncResult
from drive_sync.stores import LocalDirectoryStore, RemoteStoreError

from conftest import write_file


def make_engine(sync_root, remote_store, **config_kwargs):
    config = SyncConfig(sync_root=sync_root, retry_delay_seconds=0, **config_kwargs)
    return SyncEngine(config=config, remote_store=remote_store)


class TestSyncResult:
    """SyncResult aggregation."""

    def test_counts_from_events(self):
        result = SyncResult.from_events("upload", [
            SyncEvent(SyncAction.DELETE, "x", True),
            SyncEvent(SyncAction.UPLOAD, "a", True),
            SyncEvent(SyncAction.UPLOAD, "b", False, RemoteStoreError("boom")),
            SyncEvent(SyncAction.KEEP, "c", True),
        ])

        assert result.files_deleted == 1
        assert result.files_uploaded == 1
        assert result.files_kept == 1
        assert result.files_failed == 1
        assert result.files_changed == 2
        assert result.success is False
        assert result.error_message is None

    def test_error_event_sets_message(self):
        result = SyncResult.from_events("download", [
            SyncEvent(SyncAction.ERROR, None, False, RemoteStoreError("cannot list"))
        ])

        assert result.success is False
        assert result.files_failed == 0
        assert result.error_message == "cannot list"


class TestSyncEngine:
    """End-to-end passes over a real directory and an in-memory remote."""

    @pytest.mark.asyncio
    async def test_upload_pass_mirrors_local_set(self, remote_store, sync_root):
        write_file(sync_root, "a", b"A", 100_000)
        write_file(sync_root, "b", b"B", 200_000)
        remote_store.add("a", 50_000, b"old A")
        remote_store.add("c", 10_000, b"C")
        engine = make_engine(sync_root, remote_store)

        result = await engine.sync_to_remote()

        assert result.success
        assert [(e.action, e.file_name) for e in result.events] == [
            (SyncAction.DELETE, "c"),
            (SyncAction.UPLOAD, "a"),
            (SyncAction.UPLOAD, "b"),
        ]
        assert remote_store.names() == ["a", "b"]
        assert result.sync_duration is not None

    @pytest.mark.asyncio
    async def test_second_upload_pass_is_idempotent(self, remote_store, sync_root):
        write_file(sync_root, "a", b"A", 100_000)
        write_file(sync_root, "b", b"B", 200_000)
        remote_store.add("stale", 1)
        engine = make_engine(sync_root, remote_store)

        await engine.sync_to_remote()
        second = await engine.sync_to_remote()

        assert [e.action for e in second.events] == [SyncAction.KEEP, SyncAction.KEEP]
        assert second.files_changed == 0
        plan = await engine.plan_upload()
        assert plan.to_upload == [] and plan.to_delete == []

    @pytest.mark.asyncio
    async def test_download_pass_never_removes_local_files(self, remote_store, sync_root):
        write_file(sync_root, "local_only", b"mine", 100_000)
        write_file(sync_root, "a", b"old", 100_000)
        remote_store.add("a", 200_000, b"new")
        engine = make_engine(sync_root, remote_store)

        result = await engine.sync_from_remote()

        assert [(e.action, e.file_name, e.success) for e in result.events] == [
            (SyncAction.DOWNLOAD, "a", True)
        ]
        assert (sync_root / "a").read_bytes() == b"new"
        assert (sync_root / "local_only").read_bytes() == b"mine"
        assert result.files_downloaded == 1

    @pytest.mark.asyncio
    async def test_newer_local_dotfile_is_not_overwritten_by_download(self, remote_store, sync_root):
        write_file(sync_root, ".env", b"LOCAL NEWER", 900_000)
        remote_store.add(".env", 100_000, b"remote older")
        engine = make_engine(sync_root, remote_store)

        result = await engine.sync_from_remote()

        assert [(e.action, e.file_name) for e in result.events] == [(SyncAction.KEEP, ".env")]
        assert (sync_root / ".env").read_bytes() == b"LOCAL NEWER"

    @pytest.mark.asyncio
    async def test_upload_keeps_remote_dotfile_present_locally(self, remote_store, sync_root):
        write_file(sync_root, ".env", b"same", 100_000)
        remote_store.add(".env", 100_000, b"same")
        engine = make_engine(sync_root, remote_store)

        result = await engine.sync_to_remote()

        assert [(e.action, e.file_name) for e in result.events] == [(SyncAction.KEEP, ".env")]
        assert remote_store.names() == [".env"]

    @pytest.mark.asyncio
    async def test_listing_failure_yields_exactly_one_error_event(self, remote_store, sync_root):
        write_file(sync_root, "a", b"A", 100_000)
        remote_store.add("c", 1)
        remote_store.list_error = RemoteStoreError("listing unavailable")
        engine = make_engine(sync_root, remote_store)
        received = []

        for run in (engine.sync_to_remote, engine.sync_from_remote):
            received.clear()
            result = await run(on_progress=received.append)

            assert len(result.events) == 1
            event = result.events[0]
            assert event.action == SyncAction.ERROR
            assert event.file_name is None
            assert event.success is False
            assert isinstance(event.error, RemoteStoreError)
            assert received == result.events
            assert result.error_message == "listing unavailable"

        # Nothing but listings reached the remote store
        assert {c[0] for c in remote_store.calls} == {"list"}
        assert remote_store.names() == ["c"]

    @pytest.mark.asyncio
    async def test_error_event_survives_failing_progress_sink(self, remote_store, sync_root):
        remote_store.list_error = RemoteStoreError("down")
        engine = make_engine(sync_root, remote_store)

        def sink(event):
            raise RuntimeError("sink bug")

        result = await engine.sync_to_remote(on_progress=sink)

        assert [e.action for e in result.events] == [SyncAction.ERROR]
        assert result.error_message == "down"

    @pytest.mark.asyncio
    async def test_local_listing_failure_is_whole_operation_error(self, remote_store, tmp_path):
        not_a_dir = tmp_path / "file"
        not_a_dir.write_text("x")
        engine = make_engine(not_a_dir, remote_store)

        result = await engine.sync_to_remote()

        assert [e.action for e in result.events] == [SyncAction.ERROR]

    @pytest.mark.asyncio
    async def test_whole_pass_retried_when_configured(self, remote_store, sync_root):
        write_file(sync_root, "a", b"A", 100_000)
        engine = make_engine(sync_root, remote_store, max_retries=2)
        original = remote_store.list_files
        remote_store.list_files = AsyncMock(side_effect=[RemoteStoreError("flaky"), await original()])

        with patch("drive_sync.core.sync_engine.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await engine.sync_to_remote()

        assert result.success
        assert [e.action for e in result.events] == [SyncAction.UPLOAD]
        assert remote_store.list_files.await_count == 2
        sleep.assert_awaited_once_with(0)

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self, remote_store, sync_root):
        remote_store.list_error = RemoteStoreError("down")
        engine = make_engine(sync_root, remote_store)

        await engine.sync_to_remote()

        assert remote_store.calls == [("list",)]

    def test_default_local_store_built_from_config(self, remote_store, sync_root, tmp_path):
        engine = make_engine(sync_root, remote_store, download_dir=tmp_path / "dl")

        assert isinstance(engine.local_store, LocalDirectoryStore)
        assert engine.local_store.sync_root == sync_root
        assert engine.local_store.download_dir == tmp_path / "dl"


if __name__ == "__main__":
    pytest.main([__file__])
