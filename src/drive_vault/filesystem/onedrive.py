"""OneDrive-backed file system for the backup engine."""

from __future__ import annotations

import base64
import io
from datetime import datetime
from typing import BinaryIO

from drive_vault.core.exceptions import (
    ContentNotAvailableError,
    IsADirectoryStorageError,
    NotADirectoryStorageError,
)
from drive_vault.core.models import ChunkUploadErrorEvent, DriveItem
from drive_vault.filesystem.base import (
    DirectoryInfo,
    FileInfo,
    FileSystemInfo,
    FullName,
    HashProvider,
    WellKnownHashAlgorithms,
)
from drive_vault.logging import get_logger
from drive_vault.onedrive.client import OneDriveClient

log = get_logger(__name__)

# Retries allowed per failing chunk before the upload is abandoned
_MAX_CHUNK_RETRIES = 3


class OneDriveFileSystem:
    """Owns the client and upload settings shared by every entry."""

    def __init__(self, client: OneDriveClient, upload_chunk_size: int) -> None:
        self.client = client
        self.upload_chunk_size = upload_chunk_size

    async def get_root(self) -> OneDriveFileInfo:
        return OneDriveFileInfo(self, await self.client.get_root())

    async def get_item(self, path: str) -> OneDriveFileInfo:
        """Look up an entry by its path from the drive root."""
        return OneDriveFileInfo(self, await self.client.get_item_by_path(path))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> OneDriveFileSystem:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class OneDriveFileInfo(DirectoryInfo, FileInfo, FullName, HashProvider):
    """Read-only view of one remote file or folder.

    Wraps a :class:`DriveItem` snapshot. Every operation is delegated to the
    remote store; nothing is cached or written back, so the view goes stale
    once the remote item changes.
    """

    def __init__(self, file_system: OneDriveFileSystem, item: DriveItem) -> None:
        if file_system is None:
            raise ValueError("file_system is required")
        if item is None:
            raise ValueError("item is required")

        self.file_system = file_system
        self._item = item

    def __repr__(self) -> str:
        return f"<OneDriveFileInfo {self.full_name!r}>"

    @property
    def item(self) -> DriveItem:
        return self._item

    @property
    def name(self) -> str:
        return self._item.name

    @property
    def is_directory(self) -> bool:
        return self._item.folder is not None

    @property
    def creation_time_utc(self) -> datetime:
        return self._item.created_date_time

    @property
    def last_write_time_utc(self) -> datetime:
        return self._item.last_modified_date_time

    @property
    def length(self) -> int:
        return self._item.size

    @property
    def full_name(self) -> str:
        parent = self._item.parent_reference
        if parent is None or parent.path is None:
            return self._item.name
        return f"{parent.path}/{self._item.name}"

    async def delete(self) -> None:
        await self.file_system.client.delete(self._item)

    async def get_items(self) -> list[FileSystemInfo]:
        self._require_directory("list")
        children = await self.file_system.client.list_children(self._item)
        return [OneDriveFileInfo(self.file_system, child) for child in children]

    async def create_file(self, name: str, stream: BinaryIO, length: int) -> OneDriveFileInfo:
        self._require_directory("create a file in")
        item = await self.file_system.client.upload_file(
            self._item,
            name,
            stream,
            length,
            self.file_system.upload_chunk_size,
            _on_chunk_error,
        )
        return OneDriveFileInfo(self.file_system, item)

    async def create_directory(self, name: str) -> OneDriveFileInfo:
        self._require_directory("create a directory in")
        item = await self.file_system.client.create_folder(self._item, name)
        return OneDriveFileInfo(self.file_system, item)

    async def open_read(self) -> BinaryIO:
        if self.is_directory:
            raise IsADirectoryStorageError(f"Cannot read directory {self.full_name!r}")
        try:
            return await self.file_system.client.download(self._item)
        except ContentNotAvailableError:
            log.debug("onedrive_item_without_content", name=self.full_name)
            return io.BytesIO()

    def get_hash(self, algorithm_name: str) -> bytes | None:
        if not algorithm_name:
            return None

        file_facet = self._item.file
        if file_facet is None or file_facet.hashes is None:
            return None

        hashes = file_facet.hashes
        algorithm = algorithm_name.upper()
        if algorithm == WellKnownHashAlgorithms.SHA1:
            encoded = hashes.sha1_hash
        elif algorithm == WellKnownHashAlgorithms.CRC32:
            encoded = hashes.crc32_hash
        else:
            return None

        if encoded is None:
            return None
        return base64.b64decode(encoded)

    def _require_directory(self, action: str) -> None:
        if not self.is_directory:
            raise NotADirectoryStorageError(
                f"Cannot {action} {self.full_name!r}: not a directory"
            )


def _on_chunk_error(event: ChunkUploadErrorEvent) -> bool:
    return event.attempt_count < _MAX_CHUNK_RETRIES
