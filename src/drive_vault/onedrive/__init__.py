"""Remote store client."""

from __future__ import annotations

from drive_vault.onedrive.client import NO_CONTENT_MESSAGE, ChunkErrorHandler, OneDriveClient

__all__ = ["NO_CONTENT_MESSAGE", "ChunkErrorHandler", "OneDriveClient"]
