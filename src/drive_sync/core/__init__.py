"""Core reconciliation and sync logic package."""

from .models import (
    FileRecord,
    RemoteFileRecord,
    UploadPlan,
    DownloadPlan,
    SyncAction,
    SyncEvent
)
from .diff_engine import DiffEngine, reconcile_for_upload, reconcile_for_download
from .executor import SyncExecutor
from .sync_engine import SyncEngine, SyncResult

__all__ = [
    "FileRecord",
    "RemoteFileRecord",
    "UploadPlan",
    "DownloadPlan",
    "SyncAction",
    "SyncEvent",
    "DiffEngine",
    "reconcile_for_upload",
    "reconcile_for_download",
    "SyncExecutor",
    "SyncEngine",
    "SyncResult"
]
