"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from drive_vault.core.models import DriveItem
from drive_vault.filesystem.onedrive import OneDriveFileSystem
from drive_vault.onedrive.client import OneDriveClient

CHUNK_SIZE = 4


def _payload(
        name: str = "report.pdf",
        *,
        item_id: str | None = None,
        folder: bool = False,
        parent_path: str | None = "/drive/root:/Documents",
        size: int = 1024,
        sha1: str | None = None,
        crc32: str | None = None,
) -> dict[str, Any]:
    """Build a drive item as the store returns it (camelCase JSON)."""
    data: dict[str, Any] = {
        "id": item_id or f"id-{name}",
        "name": name,
        "createdDateTime": "2024-03-01T08:30:00Z",
        "lastModifiedDateTime": "2024-03-02T17:45:10Z",
        "size": size,
    }
    if folder:
        data["folder"] = {"childCount": 0}
    else:
        hashes = {}
        if sha1 is not None:
            hashes["sha1Hash"] = sha1
        if crc32 is not None:
            hashes["crc32Hash"] = crc32
        data["file"] = {"mimeType": "application/octet-stream", "hashes": hashes}
    if parent_path is not None:
        data["parentReference"] = {"driveId": "drive-1", "id": "parent-1", "path": parent_path}
    return data


@pytest.fixture()
def item_payload() -> Callable[..., dict[str, Any]]:
    """Return a factory for raw drive item JSON."""
    return _payload


@pytest.fixture()
def make_item() -> Callable[..., DriveItem]:
    """Return a factory for parsed DriveItem snapshots."""

    def factory(name: str = "report.pdf", **kwargs: Any) -> DriveItem:
        return DriveItem.model_validate(_payload(name, **kwargs))

    return factory


@pytest.fixture()
def mock_client() -> MagicMock:
    """A client double whose remote operations are AsyncMocks."""
    client = MagicMock(spec=OneDriveClient)
    client.get_root = AsyncMock()
    client.get_item_by_path = AsyncMock()
    client.list_children = AsyncMock(return_value=[])
    client.delete = AsyncMock()
    client.download = AsyncMock()
    client.create_folder = AsyncMock()
    client.upload_file = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture()
def file_system(mock_client: MagicMock) -> OneDriveFileSystem:
    return OneDriveFileSystem(client=mock_client, upload_chunk_size=CHUNK_SIZE)
