"""File system registry."""

from __future__ import annotations

from drive_vault.core.exceptions import ConfigError
from drive_vault.core.models import StoreConfig
from drive_vault.filesystem.base import (
    DirectoryInfo,
    FileInfo,
    FileSystemInfo,
    FullName,
    HashProvider,
    WellKnownHashAlgorithms,
)
from drive_vault.filesystem.onedrive import OneDriveFileInfo, OneDriveFileSystem


def get_file_system(config: StoreConfig) -> OneDriveFileSystem:
    """Build a OneDrive file system from store settings.

    Raises:
        ConfigError: If no access token is configured.
    """
    if config.access_token is None:
        raise ConfigError("An access token is required (DRIVE_VAULT_ACCESS_TOKEN)")

    from drive_vault.onedrive.client import OneDriveClient

    return OneDriveFileSystem(
        client=OneDriveClient.from_config(config),
        upload_chunk_size=config.upload_chunk_size,
    )


__all__ = [
    "DirectoryInfo",
    "FileInfo",
    "FileSystemInfo",
    "FullName",
    "HashProvider",
    "OneDriveFileInfo",
    "OneDriveFileSystem",
    "WellKnownHashAlgorithms",
    "get_file_system",
]
