"""Snapshot records, reconciliation plans and sync events."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FileRecord:
    """One file in a snapshot, identified by name within its store."""

    name: str
    last_modified: int  # epoch millis


@dataclass(frozen=True)
class RemoteFileRecord(FileRecord):
    """Remote file record; the remote store addresses objects by id."""

    id: str


@dataclass
class UploadPlan:
    """Actions that make the remote folder mirror the local file set."""

    to_upload: List[FileRecord] = field(default_factory=list)
    to_delete: List[RemoteFileRecord] = field(default_factory=list)
    to_keep: List[RemoteFileRecord] = field(default_factory=list)
    # name of an uploaded file -> id of the older remote copy it overwrites
    replaces: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the pass would not transfer or delete anything."""
        return not self.to_upload and not self.to_delete

    def summary(self) -> Dict[str, int]:
        return {
            "upload": len(self.to_upload),
            "delete": len(self.to_delete),
            "keep": len(self.to_keep),
        }


@dataclass
class DownloadPlan:
    """Actions that bring new or newer remote files into the local store."""

    to_download: List[RemoteFileRecord] = field(default_factory=list)
    to_keep: List[RemoteFileRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_download

    def summary(self) -> Dict[str, int]:
        return {
            "download": len(self.to_download),
            "keep": len(self.to_keep),
        }


class SyncAction(str, Enum):
    """Kind of action a sync event reports."""
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"
    KEEP = "keep"
    ERROR = "error"


@dataclass(frozen=True)
class SyncEvent:
    """Outcome of one file action, or of a failed pass (ERROR, no file name)."""

    action: SyncAction
    file_name: Optional[str]
    success: bool
    error: Optional[BaseException] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "action": self.action.value,
            "file_name": self.file_name,
            "success": self.success,
            "error": str(self.error) if self.error else None,
        }
