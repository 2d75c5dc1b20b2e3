"""Timestamp-based reconciliation of a local and a remote snapshot.

Both functions are pure: they never touch a store, and the result order
follows the iteration order of the input sequences.

Upload direction treats the local set as authoritative: remote files with no
local counterpart are deleted. Download direction never removes anything
locally. Equal timestamps always keep the existing copy.
"""

from typing import Dict, Iterable, Sequence, TypeVar

from .models import DownloadPlan, FileRecord, RemoteFileRecord, UploadPlan
from ..utils.logging import get_logger

R = TypeVar("R", bound=FileRecord)


def _index_by_name(records: Iterable[R]) -> Dict[str, R]:
    # Duplicate names: the last record wins
    return {record.name: record for record in records}


def reconcile_for_upload(
    local_files: Sequence[FileRecord],
    remote_files: Sequence[RemoteFileRecord]
) -> UploadPlan:
    """Compute the plan that forces the remote folder to the local file set."""
    local_by_name = _index_by_name(local_files)
    remote_by_name = _index_by_name(remote_files)

    plan = UploadPlan()

    for local_file in local_by_name.values():
        remote_file = remote_by_name.get(local_file.name)
        if remote_file is None:
            plan.to_upload.append(local_file)
        elif local_file.last_modified > remote_file.last_modified:
            plan.to_upload.append(local_file)
            plan.replaces[local_file.name] = remote_file.id
        else:
            plan.to_keep.append(remote_file)

    for remote_file in remote_by_name.values():
        if remote_file.name not in local_by_name:
            plan.to_delete.append(remote_file)

    return plan


def reconcile_for_download(
    local_files: Sequence[FileRecord],
    remote_files: Sequence[RemoteFileRecord]
) -> DownloadPlan:
    """Compute the plan that pulls new and strictly newer remote files."""
    local_by_name = _index_by_name(local_files)
    remote_by_name = _index_by_name(remote_files)

    plan = DownloadPlan()

    for remote_file in remote_by_name.values():
        local_file = local_by_name.get(remote_file.name)
        if local_file is None or remote_file.last_modified > local_file.last_modified:
            plan.to_download.append(remote_file)
        else:
            plan.to_keep.append(remote_file)

    return plan


class DiffEngine:
    """Reconciliation entry point used by the sync engine."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def reconcile_for_upload(
        self,
        local_files: Sequence[FileRecord],
        remote_files: Sequence[RemoteFileRecord]
    ) -> UploadPlan:
        plan = reconcile_for_upload(local_files, remote_files)
        self.logger.info(
            "Computed upload plan",
            local_files=len(local_files),
            remote_files=len(remote_files),
            **plan.summary()
        )
        return plan

    def reconcile_for_download(
        self,
        local_files: Sequence[FileRecord],
        remote_files: Sequence[RemoteFileRecord]
    ) -> DownloadPlan:
        plan = reconcile_for_download(local_files, remote_files)
        self.logger.info(
            "Computed download plan",
            local_files=len(local_files),
            remote_files=len(remote_files),
            **plan.summary()
        )
        return plan
