"""Applies reconciliation plans against the local and remote stores."""

from typing import TYPE_CHECKING, Callable, List, Optional

from .models import DownloadPlan, SyncAction, SyncEvent, UploadPlan
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from ..stores.base import LocalStore, RemoteStore

ProgressCallback = Callable[[SyncEvent], None]


class SyncExecutor:
    """Runs a plan one file at a time.

    Every file action is awaited before the next one starts. A failing action
    is reported as an unsuccessful event for that file and the rest of the
    plan still runs. Nothing is retried here.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    async def execute_upload(
        self,
        plan: UploadPlan,
        remote_store: "RemoteStore",
        local_store: "LocalStore",
        on_progress: Optional[ProgressCallback] = None
    ) -> List[SyncEvent]:
        """Apply an upload plan: deletions, then uploads, then keep notices.

        Args:
            plan: Plan from reconcile_for_upload
            remote_store: Store the deletions and uploads are issued against
            local_store: Store the uploaded bytes are read from
            on_progress: Called with each event as it is emitted

        Returns:
            All emitted events in emission order
        """
        events: List[SyncEvent] = []

        for remote_file in plan.to_delete:
            try:
                await remote_store.delete(remote_file.id)
            except Exception as e:
                self.logger.error(
                    "Error deleting remote file",
                    file_name=remote_file.name,
                    file_id=remote_file.id,
                    error=str(e)
                )
                self._emit(events, on_progress, SyncEvent(SyncAction.DELETE, remote_file.name, False, e))
            else:
                self.logger.info("Deleted remote file", file_name=remote_file.name)
                self._emit(events, on_progress, SyncEvent(SyncAction.DELETE, remote_file.name, True))

        for local_file in plan.to_upload:
            try:
                content = await local_store.read_bytes(local_file.name)
                await remote_store.upload(
                    local_file.name,
                    content,
                    replace_id=plan.replaces.get(local_file.name)
                )
            except Exception as e:
                self.logger.error("Failed to upload file", file_name=local_file.name, error=str(e))
                self._emit(events, on_progress, SyncEvent(SyncAction.UPLOAD, local_file.name, False, e))
            else:
                self.logger.info("Uploaded file", file_name=local_file.name, size=len(content))
                self._emit(events, on_progress, SyncEvent(SyncAction.UPLOAD, local_file.name, True))

        for remote_file in plan.to_keep:
            self._emit(events, on_progress, SyncEvent(SyncAction.KEEP, remote_file.name, True))

        return events

    async def execute_download(
        self,
        plan: DownloadPlan,
        remote_store: "RemoteStore",
        local_store: "LocalStore",
        on_progress: Optional[ProgressCallback] = None
    ) -> List[SyncEvent]:
        """Apply a download plan: downloads, then keep notices.

        Each download replaces any local file of the same name; a failed
        download leaves the previous local file untouched.
        """
        events: List[SyncEvent] = []

        for remote_file in plan.to_download:
            try:
                with local_store.open_for_write(remote_file.name) as fh:
                    await remote_store.download_to(remote_file.id, fh)
            except Exception as e:
                self.logger.error("Failed to download file", file_name=remote_file.name, error=str(e))
                self._emit(events, on_progress, SyncEvent(SyncAction.DOWNLOAD, remote_file.name, False, e))
            else:
                self.logger.info("Downloaded file", file_name=remote_file.name)
                self._emit(events, on_progress, SyncEvent(SyncAction.DOWNLOAD, remote_file.name, True))

        for remote_file in plan.to_keep:
            self._emit(events, on_progress, SyncEvent(SyncAction.KEEP, remote_file.name, True))

        return events

    def _emit(
        self,
        events: List[SyncEvent],
        on_progress: Optional[ProgressCallback],
        event: SyncEvent
    ) -> None:
        events.append(event)
        self.notify(on_progress, event)

    def notify(self, on_progress: Optional[ProgressCallback], event: SyncEvent) -> None:
        """Hand an event to the progress sink; a failing sink is logged, not raised."""
        if on_progress is None:
            return
        try:
            on_progress(event)
        except Exception as e:
            self.logger.error(
                "Progress callback failed",
                action=event.action.value,
                file_name=event.file_name,
                error=str(e)
            )
