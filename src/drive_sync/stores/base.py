"""Store interfaces the sync core is driven against."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, BinaryIO, Dict, List, Optional

from ..core.models import FileRecord, RemoteFileRecord
from ..utils.logging import get_logger


class LocalStore(ABC):
    """On-device file collection addressed by name."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    async def list_files(self) -> List[FileRecord]:
        """Snapshot the files in the sync root."""
        pass

    @abstractmethod
    async def read_bytes(self, name: str) -> bytes:
        """Read the content of a file in the sync root.

        Raises:
            LocalStoreError: If the file cannot be read
        """
        pass

    @abstractmethod
    def open_for_write(self, name: str) -> AbstractContextManager[BinaryIO]:
        """Open a handle that creates or replaces a file in the download root.

        The new content becomes visible only when the context exits without
        an error; otherwise any previous file of that name is left in place.
        """
        pass


class RemoteStore(ABC):
    """Remote object collection addressed by opaque ids and unique names."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)
        self._authenticated = False

    @abstractmethod
    async def authenticate(self) -> bool:
        """Authenticate with the remote service.

        Returns:
            True if authentication successful
        """
        pass

    @abstractmethod
    async def list_files(self) -> List[RemoteFileRecord]:
        """Snapshot the objects in the remote folder."""
        pass

    @abstractmethod
    async def upload(self, name: str, content: bytes, replace_id: Optional[str] = None) -> str:
        """Create an object with the given name and content.

        Args:
            name: Object name inside the remote folder
            content: Object bytes, uploaded verbatim
            replace_id: Id of an existing object whose content is overwritten instead

        Returns:
            Id of the created or updated object
        """
        pass

    @abstractmethod
    async def delete(self, file_id: str) -> None:
        """Delete an object by id."""
        pass

    @abstractmethod
    async def download_to(self, file_id: str, fh: BinaryIO) -> None:
        """Stream an object's content into a writable binary handle."""
        pass

    async def get_sync_info(self) -> Dict[str, Any]:
        """Get information about the remote store.

        Returns:
            Dictionary with store information
        """
        return {
            "store_type": self.__class__.__name__,
            "authenticated": self._authenticated
        }


class StoreError(Exception):
    """Base class for store failures."""
    pass


class LocalStoreError(StoreError):
    """Raised when the local store cannot read or write a file."""
    pass


class RemoteStoreError(StoreError):
    """Raised when a remote call fails."""
    pass


class AuthenticationError(RemoteStoreError):
    """Raised when remote authentication fails."""
    pass


class RemoteFileNotFoundError(RemoteStoreError):
    """Raised when a remote object id does not exist."""
    pass


class RateLimitError(RemoteStoreError):
    """Raised when the remote rate limit is exceeded."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after
