"""Google Drive remote store."""

import asyncio
import io
import json
import os
from typing import Any, BinaryIO, Dict, List, Optional
from datetime import datetime

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload
import google.auth.exceptions

from .base import (
    RemoteStore,
    RemoteStoreError,
    AuthenticationError,
    RateLimitError,
    RemoteFileNotFoundError
)
from ..config.schema import APP_DATA_FOLDER
from ..core.models import RemoteFileRecord
from ..utils.logging import log_async_execution_time

DRIVE_APPDATA_SCOPE = "https://www.googleapis.com/auth/drive.appdata"
DRIVE_FILE_SCOPE = "https://www.googleapis.com/auth/drive.file"
UPLOAD_MIME_TYPE = "application/octet-stream"


class GoogleDriveStore(RemoteStore):
    """Remote store backed by a single Google Drive folder."""

    def __init__(
        self,
        parent_folder: str = APP_DATA_FOLDER,
        credentials: Any = None,
        credentials_path: Optional[str] = None,
        application_name: str = "Drive Sync",
        service: Any = None,
        page_size: int = 1000
    ):
        """Initialize Google Drive store.

        Args:
            parent_folder: Folder id holding the synced files, or appDataFolder
            credentials: Ready google.auth credentials held by the caller
            credentials_path: Service account key file, used when no credentials are given
            application_name: Application name for the API client
            service: Pre-built Drive v3 service resource
            page_size: Files requested per listing page (max 1000)
        """
        super().__init__()
        self.parent_folder = parent_folder
        self.credentials = credentials
        self.credentials_path = credentials_path
        self.application_name = application_name
        self.page_size = min(page_size, 1000)
        self.service = service
        self.api_version = "v3"

        if parent_folder == APP_DATA_FOLDER:
            self.scopes = [DRIVE_APPDATA_SCOPE]
        else:
            self.scopes = [DRIVE_APPDATA_SCOPE, DRIVE_FILE_SCOPE]

        if service is not None:
            self._authenticated = True

        self.logger.info(
            "Google Drive store initialized",
            parent_folder=self.parent_folder,
            application_name=self.application_name
        )

    @property
    def spaces(self) -> str:
        return "appDataFolder" if self.parent_folder == APP_DATA_FOLDER else "drive"

    @log_async_execution_time
    async def authenticate(self) -> bool:
        """Build the Drive service from caller credentials or a service account file."""
        if self.service is not None:
            self._authenticated = True
            return True

        try:
            if self.credentials is None:
                if not self.credentials_path:
                    raise AuthenticationError("No credentials or credentials file configured")

                if not os.path.exists(self.credentials_path):
                    self.logger.error(
                        "Google Drive credentials file not found",
                        path=self.credentials_path
                    )
                    raise AuthenticationError(f"Credentials file not found: {self.credentials_path}")

                self.credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_path,
                    scopes=self.scopes
                )

            self.service = build(
                "drive",
                self.api_version,
                credentials=self.credentials,
                cache_discovery=False
            )

            self._authenticated = True
            self.logger.info("Google Drive authentication successful", parent_folder=self.parent_folder)
            return True

        except AuthenticationError:
            raise

        except json.JSONDecodeError as e:
            error_msg = f"Invalid credentials file format: {e}"
            self.logger.error("Google Drive authentication failed", error=error_msg)
            raise AuthenticationError(error_msg)

        except (google.auth.exceptions.DefaultCredentialsError, ValueError) as e:
            error_msg = f"Invalid credentials: {e}"
            self.logger.error("Google Drive authentication failed", error=error_msg)
            raise AuthenticationError(error_msg)

    async def list_files(self) -> List[RemoteFileRecord]:
        """List every non-trashed file in the parent folder, following page tokens."""
        await self._ensure_authenticated()

        query = self._build_query()
        page_token = None
        records: List[RemoteFileRecord] = []

        while True:
            request = self.service.files().list(
                spaces=self.spaces,
                q=query,
                fields="nextPageToken, files(id, name, modifiedTime)",
                pageSize=self.page_size,
                pageToken=page_token
            )
            result = await self._run(request, "list_files")

            files = result.get("files", [])
            records.extend(self._convert_to_record(file_data) for file_data in files)
            page_token = result.get("nextPageToken")

            self.logger.debug(
                "Retrieved Google Drive files page",
                files_count=len(files),
                has_next_page=bool(page_token)
            )

            if not page_token:
                break

        self.logger.info("Listed Google Drive files", parent_folder=self.parent_folder, count=len(records))
        return records

    async def upload(self, name: str, content: bytes, replace_id: Optional[str] = None) -> str:
        await self._ensure_authenticated()

        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=UPLOAD_MIME_TYPE, resumable=False)

        if replace_id:
            request = self.service.files().update(
                fileId=replace_id,
                media_body=media,
                fields="id"
            )
        else:
            request = self.service.files().create(
                body={"name": name, "parents": [self.parent_folder]},
                media_body=media,
                fields="id"
            )

        result = await self._run(request, "upload", file_name=name)
        return result.get("id", replace_id or "")

    async def delete(self, file_id: str) -> None:
        await self._ensure_authenticated()
        request = self.service.files().delete(fileId=file_id)
        await self._run(request, "delete", file_id=file_id)

    async def download_to(self, file_id: str, fh: BinaryIO) -> None:
        await self._ensure_authenticated()
        request = self.service.files().get_media(fileId=file_id)

        try:
            await asyncio.get_event_loop().run_in_executor(
                None, self._download_chunks, request, fh
            )
        except HttpError as e:
            raise self._translate_http_error(e, "download", file_id=file_id)

    async def get_sync_info(self) -> Dict[str, Any]:
        """Get information about the Google Drive store."""
        base_info = await super().get_sync_info()
        base_info.update({
            "parent_folder": self.parent_folder,
            "spaces": self.spaces,
            "credentials_path": self.credentials_path
        })
        return base_info

    def _build_query(self) -> str:
        return f"'{self.parent_folder}' in parents and trashed=false"

    def _convert_to_record(self, file_data: Dict[str, Any]) -> RemoteFileRecord:
        return RemoteFileRecord(
            name=file_data.get("name", ""),
            last_modified=self._parse_timestamp(file_data.get("modifiedTime")),
            id=file_data["id"]
        )

    def _parse_timestamp(self, timestamp_str: Optional[str]) -> int:
        """Parse an RFC 3339 Drive timestamp to epoch millis (0 when absent)."""
        if not timestamp_str:
            return 0

        try:
            parsed = datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            self.logger.warning("Failed to parse timestamp", timestamp=timestamp_str)
            return 0

        return int(parsed.timestamp() * 1000)

    async def _ensure_authenticated(self) -> None:
        if not self._authenticated:
            await self.authenticate()

    async def _run(self, request, operation: str, **context) -> Dict[str, Any]:
        """Execute a blocking API request in the default executor."""
        try:
            result = await asyncio.get_event_loop().run_in_executor(
                None, self._execute_request, request
            )
        except HttpError as e:
            raise self._translate_http_error(e, operation, **context)
        return result or {}

    def _translate_http_error(self, error: HttpError, operation: str, **context) -> RemoteStoreError:
        status = getattr(error.resp, "status", None)
        self.logger.error(
            "Google Drive API error",
            operation=operation,
            status=status,
            error=str(error),
            **context
        )

        if status == 429:
            retry_after = int(error.resp.get("retry-after", 60))
            return RateLimitError("Google Drive rate limit exceeded", retry_after)
        if status == 404:
            return RemoteFileNotFoundError(f"Google Drive file not found during {operation}: {error}")
        if status in (401, 403):
            return AuthenticationError(f"Google Drive rejected {operation}: {error}")
        return RemoteStoreError(f"Google Drive API error during {operation}: {error}")

    def _execute_request(self, request):
        """Execute Google API request (to be run in thread pool)."""
        return request.execute()

    def _download_chunks(self, request, fh: BinaryIO) -> None:
        downloader = MediaIoBaseDownload(fh, request)
        done = False
        while not done:
            _, done = downloader.next_chunk()
