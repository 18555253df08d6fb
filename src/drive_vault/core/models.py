"""Pydantic models for drive-vault configuration and remote item metadata."""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel

# Upload session chunks must be a multiple of this size
UPLOAD_CHUNK_GRANULARITY = 320 * 1024


# ──────────────────────── Enums ──────────────────────────


class LogFormat(enum.StrEnum):
    """Structured log output format."""

    CONSOLE = "console"
    JSON = "json"


# ──────────────────── Remote Item Models ─────────────────


class _RemoteModel(BaseModel):
    """Immutable snapshot parsed from the store's camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Hashes(_RemoteModel):
    """Content hashes reported by the store, base64 encoded."""

    sha1_hash: str | None = None
    crc32_hash: str | None = None
    quick_xor_hash: str | None = None


class FileFacet(_RemoteModel):
    """Present on items that carry byte content."""

    mime_type: str | None = None
    hashes: Hashes | None = None


class FolderFacet(_RemoteModel):
    """Present on items with folder semantics."""

    child_count: int = 0


class ItemReference(_RemoteModel):
    """Pointer to an item's parent."""

    drive_id: str | None = None
    id: str | None = None
    path: str | None = None


class DriveItem(_RemoteModel):
    """One file or folder node of the remote store."""

    id: str
    name: str
    created_date_time: datetime
    last_modified_date_time: datetime
    size: int = 0
    folder: FolderFacet | None = None
    file: FileFacet | None = None
    parent_reference: ItemReference | None = None

    @field_validator("created_date_time", "last_modified_date_time")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)


class ChunkUploadErrorEvent(BaseModel):
    """Describes a failed chunk transfer, passed to the retry callback."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    attempt_count: int  # retries already made for this chunk
    offset: int
    length: int
    total_length: int
    exception: Exception


# ──────────────────── Config Models ──────────────────────


class StoreConfig(BaseModel):
    """Remote store connection settings."""

    api_url: str = "https://graph.microsoft.com/v1.0/me/drive"
    access_token: SecretStr | None = None
    upload_chunk_size: int = 10 * 1024 * 1024
    timeout: float = 60.0

    @field_validator("upload_chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v <= 0 or v % UPLOAD_CHUNK_GRANULARITY != 0:
            msg = f"Upload chunk size must be a positive multiple of {UPLOAD_CHUNK_GRANULARITY} bytes"
            raise ValueError(msg)
        return v

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    log_file: Path | None = None
    format: LogFormat = LogFormat.CONSOLE


class AppConfig(BaseModel):
    """Top-level application configuration."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
