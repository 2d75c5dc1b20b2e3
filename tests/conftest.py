"""Shared test fixtures: an in-memory remote store and local file helpers."""

import os
import sys
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from drive_sync.core.models import RemoteFileRecord
from drive_sync.stores.base import RemoteStore, RemoteStoreError, RemoteFileNotFoundError


class InMemoryRemoteStore(RemoteStore):
    """Remote store keeping objects in a dict, with injectable failures."""

    def __init__(self, clock: int = 10 ** 13):
        super().__init__()
        self.objects: Dict[str, Dict] = {}
        self.calls: List[tuple] = []
        self.clock = clock
        self.list_error: Optional[Exception] = None
        self.fail_delete_ids = set()
        self.fail_upload_names = set()
        self.fail_download_ids = set()
        self._next_id = 0

    def add(self, name: str, last_modified: int, content: bytes = b"") -> str:
        self._next_id += 1
        file_id = f"id_{self._next_id}"
        self.objects[file_id] = {"name": name, "modified": last_modified, "content": content}
        return file_id

    def names(self) -> List[str]:
        return sorted(obj["name"] for obj in self.objects.values())

    async def authenticate(self) -> bool:
        self._authenticated = True
        return True

    async def list_files(self) -> List[RemoteFileRecord]:
        self.calls.append(("list",))
        if self.list_error is not None:
            raise self.list_error
        return [
            RemoteFileRecord(name=obj["name"], last_modified=obj["modified"], id=file_id)
            for file_id, obj in self.objects.items()
        ]

    async def upload(self, name: str, content: bytes, replace_id: Optional[str] = None) -> str:
        self.calls.append(("upload", name, replace_id))
        if name in self.fail_upload_names:
            raise RemoteStoreError(f"upload rejected: {name}")
        self.clock += 1000
        if replace_id:
            if replace_id not in self.objects:
                raise RemoteFileNotFoundError(replace_id)
            self.objects[replace_id].update(content=content, modified=self.clock)
            return replace_id
        file_id = self.add(name, self.clock, content)
        return file_id

    async def delete(self, file_id: str) -> None:
        self.calls.append(("delete", file_id))
        if file_id in self.fail_delete_ids:
            raise RemoteStoreError(f"delete rejected: {file_id}")
        if file_id not in self.objects:
            raise RemoteFileNotFoundError(file_id)
        del self.objects[file_id]

    async def download_to(self, file_id: str, fh: BinaryIO) -> None:
        self.calls.append(("download", file_id))
        if file_id in self.fail_download_ids:
            fh.write(b"partial")
            raise RemoteStoreError(f"download interrupted: {file_id}")
        fh.write(self.objects[file_id]["content"])


def write_file(directory: Path, name: str, content: bytes, modified_ms: int) -> Path:
    """Create a file with a given modification time in epoch millis."""
    path = directory / name
    path.write_bytes(content)
    os.utime(path, (modified_ms / 1000, modified_ms / 1000))
    return path


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def sync_root(tmp_path):
    root = tmp_path / "sync_root"
    root.mkdir()
    return root
