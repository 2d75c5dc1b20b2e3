"""Local and remote store implementations."""

from .base import (
    LocalStore,
    RemoteStore,
    StoreError,
    LocalStoreError,
    RemoteStoreError,
    AuthenticationError,
    RemoteFileNotFoundError,
    RateLimitError
)

from .local import LocalDirectoryStore
from .google_drive import GoogleDriveStore

__all__ = [
    # Interfaces and errors
    "LocalStore",
    "RemoteStore",
    "StoreError",
    "LocalStoreError",
    "RemoteStoreError",
    "AuthenticationError",
    "RemoteFileNotFoundError",
    "RateLimitError",

    # Implementations
    "LocalDirectoryStore",
    "GoogleDriveStore"
]
