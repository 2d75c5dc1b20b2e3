"""Tests for timestamp reconciliation."""

import sys
import os
import random

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from drive_sync.core import (
    DiffEngine,
    FileRecord,
    RemoteFileRecord,
    reconcile_for_upload,
    reconcile_for_download
)


def local(name, modified):
    return FileRecord(name=name, last_modified=modified)


def remote(name, modified, file_id=None):
    return RemoteFileRecord(name=name, last_modified=modified, id=file_id or f"id_{name}")


def names(records):
    return [r.name for r in records]


class TestReconcileForUpload:
    """Upload direction: the local set is authoritative."""

    def test_newer_and_new_local_files_upload_and_remote_only_deleted(self):
        plan = reconcile_for_upload(
            [local("a", 100), local("b", 200)],
            [remote("a", 50), remote("c", 10)]
        )

        assert names(plan.to_upload) == ["a", "b"]
        assert names(plan.to_delete) == ["c"]
        assert plan.to_keep == []

    def test_equal_timestamps_keep_remote_copy(self):
        plan = reconcile_for_upload([local("a", 100)], [remote("a", 100)])

        assert plan.to_upload == []
        assert names(plan.to_keep) == ["a"]
        assert plan.to_delete == []

    def test_older_local_file_keeps_remote_copy(self):
        plan = reconcile_for_upload([local("a", 100)], [remote("a", 300)])

        assert plan.to_upload == []
        assert plan.to_keep == [remote("a", 300)]

    def test_replaced_remote_copy_is_recorded(self):
        plan = reconcile_for_upload(
            [local("a", 100), local("b", 100)],
            [remote("a", 50, "remote_a")]
        )

        assert plan.replaces == {"a": "remote_a"}

    def test_empty_inputs(self):
        plan = reconcile_for_upload([], [])

        assert plan.is_empty
        assert plan.summary() == {"upload": 0, "delete": 0, "keep": 0}

    def test_empty_local_deletes_everything_remote(self):
        plan = reconcile_for_upload([], [remote("x", 1), remote("y", 2)])

        assert names(plan.to_delete) == ["x", "y"]
        assert plan.to_upload == []

    def test_order_follows_input(self):
        plan = reconcile_for_upload(
            [local("z", 5), local("m", 5), local("a", 5)],
            [remote("q", 1), remote("b", 1)]
        )

        assert names(plan.to_upload) == ["z", "m", "a"]
        assert names(plan.to_delete) == ["q", "b"]

    def test_duplicate_local_names_last_record_wins(self):
        plan = reconcile_for_upload(
            [local("a", 10), local("a", 500)],
            [remote("a", 100)]
        )

        assert plan.to_upload == [local("a", 500)]
        assert plan.to_keep == []

    def test_partitions_are_disjoint_and_cover_every_name(self):
        rng = random.Random(1234)

        for _ in range(200):
            pool = [f"f{i}" for i in range(12)]
            local_files = [local(n, rng.randint(0, 5)) for n in rng.sample(pool, rng.randint(0, 12))]
            remote_files = [remote(n, rng.randint(0, 5)) for n in rng.sample(pool, rng.randint(0, 12))]

            plan = reconcile_for_upload(local_files, remote_files)

            local_names = set(names(local_files))
            remote_only = set(names(remote_files)) - local_names
            upload, keep, delete = set(names(plan.to_upload)), set(names(plan.to_keep)), set(names(plan.to_delete))

            assert upload | keep == local_names
            assert not upload & keep
            assert delete == remote_only
            assert not (upload | keep) & delete

    def test_second_pass_after_upload_is_all_keep(self):
        local_files = [local("a", 100), local("b", 200)]
        plan = reconcile_for_upload(local_files, [remote("a", 50), remote("c", 10)])

        # Remote state after the first pass: uploads stamped later than the local copies
        converged = [remote(f.name, 1000) for f in plan.to_upload] + list(plan.to_keep)
        second = reconcile_for_upload(local_files, converged)

        assert second.to_upload == []
        assert second.to_delete == []
        assert names(second.to_keep) == ["a", "b"]


class TestReconcileForDownload:
    """Download direction: never removes or reports local-only files."""

    def test_strictly_newer_remote_downloads(self):
        plan = reconcile_for_download([local("a", 100)], [remote("a", 200)])

        assert names(plan.to_download) == ["a"]
        assert plan.to_keep == []

    def test_remote_only_file_downloads(self):
        plan = reconcile_for_download([], [remote("new", 1)])

        assert names(plan.to_download) == ["new"]

    def test_equal_or_older_remote_is_kept(self):
        plan = reconcile_for_download(
            [local("a", 100), local("b", 100)],
            [remote("a", 100), remote("b", 20)]
        )

        assert plan.to_download == []
        assert names(plan.to_keep) == ["a", "b"]
        assert plan.is_empty

    def test_local_only_files_never_appear(self):
        plan = reconcile_for_download(
            [local("mine", 999), local("shared", 1)],
            [remote("shared", 5)]
        )

        all_names = names(plan.to_download) + names(plan.to_keep)
        assert "mine" not in all_names
        assert plan.summary() == {"download": 1, "keep": 0}


class TestDiffEngine:
    """DiffEngine delegates to the pure functions."""

    def test_methods_match_functions(self):
        engine = DiffEngine()
        local_files = [local("a", 100), local("b", 200)]
        remote_files = [remote("a", 50), remote("c", 10)]

        assert engine.reconcile_for_upload(local_files, remote_files) == reconcile_for_upload(local_files, remote_files)
        assert engine.reconcile_for_download(local_files, remote_files) == reconcile_for_download(local_files, remote_files)


if __name__ == "__main__":
    pytest.main([__file__])
