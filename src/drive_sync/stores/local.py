"""Local directory store."""

import os
import stat
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, List, Optional, Union

from .base import LocalStore, LocalStoreError
from ..core.models import FileRecord

# Returns an open binary stream for a path, or None when it cannot serve it
ContentOpener = Callable[[Path], Optional[BinaryIO]]

# In-progress downloads; never part of a snapshot
TEMP_PREFIX = ".drive-sync-"
TEMP_SUFFIX = ".part"


class LocalDirectoryStore(LocalStore):
    """Flat directory of files mirrored against a remote folder."""

    def __init__(
        self,
        sync_root: Union[str, Path],
        download_dir: Optional[Union[str, Path]] = None,
        content_opener: Optional[ContentOpener] = None
    ):
        """Initialize local store.

        Args:
            sync_root: Directory whose files are enumerated and uploaded
            download_dir: Directory downloads are written to (defaults to sync_root)
            content_opener: Optional reader tried before the plain filesystem read
        """
        super().__init__()
        self.sync_root = Path(sync_root)
        self.download_dir = Path(download_dir) if download_dir else self.sync_root
        self.content_opener = content_opener

    async def list_files(self) -> List[FileRecord]:
        if not self.sync_root.exists():
            self.logger.warning("Sync root does not exist, treating as empty", sync_root=str(self.sync_root))
            return []
        if not self.sync_root.is_dir():
            raise LocalStoreError(f"Sync root is not a directory: {self.sync_root}")

        records = []
        try:
            for entry in sorted(self.sync_root.iterdir()):
                if self._is_temp_file(entry.name) or not entry.is_file():
                    continue
                records.append(
                    FileRecord(name=entry.name, last_modified=int(entry.stat().st_mtime * 1000))
                )
        except OSError as e:
            raise LocalStoreError(f"Failed to list {self.sync_root}: {e}")

        self.logger.debug("Listed local files", sync_root=str(self.sync_root), count=len(records))
        return records

    async def read_bytes(self, name: str) -> bytes:
        path = self.sync_root / self._checked_name(name)

        if self.content_opener is not None:
            try:
                stream = self.content_opener(path)
            except OSError as e:
                raise LocalStoreError(f"Failed to open {name}: {e}")
            if stream is not None:
                with stream:
                    return stream.read()

        try:
            return path.read_bytes()
        except OSError as e:
            raise LocalStoreError(f"Failed to read {name}: {e}")

    @contextmanager
    def open_for_write(self, name: str) -> Iterator[BinaryIO]:
        target = self.download_dir / self._checked_name(name)

        try:
            self.download_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, dir=self.download_dir)
        except OSError as e:
            raise LocalStoreError(f"Failed to prepare download of {name}: {e}")

        try:
            with os.fdopen(fd, "wb") as fh:
                yield fh
            os.chmod(tmp_name, self._target_mode(target))
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _is_temp_file(self, name: str) -> bool:
        return name.startswith(TEMP_PREFIX) and name.endswith(TEMP_SUFFIX)

    def _target_mode(self, target: Path) -> int:
        """Mode of the file being replaced, else the umask default for new files."""
        try:
            return stat.S_IMODE(target.stat().st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def _checked_name(self, name: str) -> str:
        if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
            raise LocalStoreError(f"Invalid file name: {name!r}")
        return name
