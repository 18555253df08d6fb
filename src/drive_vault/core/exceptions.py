"""Custom exceptions for drive-vault."""

from __future__ import annotations


class DriveVaultError(Exception):
    """Base exception for all drive-vault errors."""


class ConfigError(DriveVaultError):
    """Raised when configuration is invalid or missing."""


class StorageError(DriveVaultError):
    """Raised when a storage operation fails."""


class OneDriveError(StorageError):
    """Raised when the remote store rejects a request or cannot be reached."""

    def __init__(
            self,
            message: str,
            status_code: int | None = None,
            code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class ContentNotAvailableError(OneDriveError):
    """Raised when a remote item has no byte content to download."""


class ChunkUploadError(OneDriveError):
    """Raised when a chunk of an upload session fails and is not retried."""


class NotADirectoryStorageError(StorageError):
    """Raised when a directory operation targets a file entry."""


class IsADirectoryStorageError(StorageError):
    """Raised when a file operation targets a directory entry."""
