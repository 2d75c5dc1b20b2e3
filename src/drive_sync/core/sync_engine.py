"""Sync engine: snapshots, reconciliation and plan execution for one pass."""

import asyncio
from typing import TYPE_CHECKING, List, Optional, Tuple
from datetime import datetime
from dataclasses import dataclass, field

from .diff_engine import DiffEngine
from .executor import ProgressCallback, SyncExecutor
from .models import (
    DownloadPlan,
    FileRecord,
    RemoteFileRecord,
    SyncAction,
    SyncEvent,
    UploadPlan
)
from ..config.schema import SyncConfig
from ..utils.logging import get_logger, log_async_execution_time, pass_context

if TYPE_CHECKING:
    from ..stores.base import LocalStore, RemoteStore

UPLOAD = "upload"
DOWNLOAD = "download"


@dataclass
class SyncResult:
    """Result of a sync pass."""

    direction: str
    success: bool
    events: List[SyncEvent] = field(default_factory=list)
    files_uploaded: int = 0
    files_downloaded: int = 0
    files_deleted: int = 0
    files_kept: int = 0
    files_failed: int = 0
    error_message: Optional[str] = None
    sync_duration: Optional[float] = None

    @property
    def files_changed(self) -> int:
        """Total files that were transferred or deleted."""
        return self.files_uploaded + self.files_downloaded + self.files_deleted

    @classmethod
    def from_events(cls, direction: str, events: List[SyncEvent]) -> "SyncResult":
        result = cls(direction=direction, success=True, events=list(events))

        for event in events:
            if not event.success:
                result.success = False
                if event.action == SyncAction.ERROR:
                    result.error_message = str(event.error)
                else:
                    result.files_failed += 1
                continue

            if event.action == SyncAction.UPLOAD:
                result.files_uploaded += 1
            elif event.action == SyncAction.DOWNLOAD:
                result.files_downloaded += 1
            elif event.action == SyncAction.DELETE:
                result.files_deleted += 1
            elif event.action == SyncAction.KEEP:
                result.files_kept += 1

        return result


class SyncEngine:
    """Orchestrates one upload-direction or download-direction pass.

    The remote and local snapshots are taken before anything is classified.
    When either cannot be taken the pass stops with a single ERROR event and
    no file action; such a pass may be repeated from scratch up to
    ``config.max_retries`` times.
    """

    def __init__(
        self,
        config: SyncConfig,
        remote_store: "RemoteStore",
        local_store: Optional["LocalStore"] = None
    ):
        """Initialize sync engine.

        Args:
            config: Validated sync configuration
            remote_store: Remote folder to sync against
            local_store: Local store (defaults to a directory store built from config)
        """
        # stores import core.models, so the default store is resolved here
        from ..stores.local import LocalDirectoryStore

        self.config = config
        self.remote_store = remote_store
        self.local_store = local_store or LocalDirectoryStore(
            sync_root=config.sync_root,
            download_dir=config.download_dir
        )
        self.diff_engine = DiffEngine()
        self.executor = SyncExecutor()
        self.logger = get_logger(self.__class__.__name__)

    @log_async_execution_time
    async def sync_to_remote(self, on_progress: Optional[ProgressCallback] = None) -> SyncResult:
        """Make the remote folder mirror the local sync root."""
        with pass_context(UPLOAD):
            return await self._run_pass(UPLOAD, on_progress)

    @log_async_execution_time
    async def sync_from_remote(self, on_progress: Optional[ProgressCallback] = None) -> SyncResult:
        """Download new and newer remote files into the download directory."""
        with pass_context(DOWNLOAD):
            return await self._run_pass(DOWNLOAD, on_progress)

    async def plan_upload(self) -> UploadPlan:
        """Snapshot both stores and compute the upload plan without applying it."""
        local_files, remote_files = await self._take_snapshots()
        return self.diff_engine.reconcile_for_upload(local_files, remote_files)

    async def plan_download(self) -> DownloadPlan:
        """Snapshot both stores and compute the download plan without applying it."""
        local_files, remote_files = await self._take_snapshots()
        return self.diff_engine.reconcile_for_download(local_files, remote_files)

    async def _run_pass(self, direction: str, on_progress: Optional[ProgressCallback]) -> SyncResult:
        start_time = datetime.now()

        self.logger.info(
            "Starting sync",
            direction=direction,
            sync_root=str(self.config.sync_root),
            parent_folder=self.config.parent_folder
        )

        for attempt in range(self.config.max_retries + 1):
            try:
                local_files, remote_files = await self._take_snapshots()
            except Exception as e:
                if attempt < self.config.max_retries:
                    self.logger.warning(
                        "Snapshot failed, retrying pass after delay",
                        direction=direction,
                        attempt=attempt + 1,
                        delay_seconds=self.config.retry_delay_seconds,
                        error=str(e)
                    )
                    await asyncio.sleep(self.config.retry_delay_seconds)
                    continue

                self.logger.error("Error during sync", direction=direction, error=str(e))
                event = SyncEvent(SyncAction.ERROR, None, False, e)
                self.executor.notify(on_progress, event)
                return self._finish(SyncResult.from_events(direction, [event]), start_time)

            if direction == UPLOAD:
                plan = self.diff_engine.reconcile_for_upload(local_files, remote_files)
                events = await self.executor.execute_upload(
                    plan, self.remote_store, self.local_store, on_progress
                )
            else:
                plan = self.diff_engine.reconcile_for_download(local_files, remote_files)
                events = await self.executor.execute_download(
                    plan, self.remote_store, self.local_store, on_progress
                )

            return self._finish(SyncResult.from_events(direction, events), start_time)

    async def _take_snapshots(self) -> Tuple[List[FileRecord], List[RemoteFileRecord]]:
        remote_files = await self.remote_store.list_files()
        local_files = await self.local_store.list_files()
        return local_files, remote_files

    def _finish(self, result: SyncResult, start_time: datetime) -> SyncResult:
        result.sync_duration = (datetime.now() - start_time).total_seconds()

        self.logger.info(
            "Sync completed",
            direction=result.direction,
            success=result.success,
            files_changed=result.files_changed,
            files_kept=result.files_kept,
            files_failed=result.files_failed,
            duration=f"{result.sync_duration:.2f}s"
        )
        return result
