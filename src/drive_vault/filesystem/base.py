"""Capability interfaces a backup engine uses to walk and write a file tree."""

from __future__ import annotations

import abc
from datetime import datetime
from typing import BinaryIO


class WellKnownHashAlgorithms:
    """Algorithm names accepted by :meth:`HashProvider.get_hash`."""

    SHA1 = "SHA1"
    CRC32 = "CRC32"


class FileSystemInfo(abc.ABC):
    """Metadata shared by every file or directory entry."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Entry name, without its parent path."""

    @property
    @abc.abstractmethod
    def is_directory(self) -> bool:
        """True when the entry can hold children."""

    @property
    @abc.abstractmethod
    def creation_time_utc(self) -> datetime: ...

    @property
    @abc.abstractmethod
    def last_write_time_utc(self) -> datetime: ...

    @property
    @abc.abstractmethod
    def length(self) -> int:
        """Size in bytes. Not meaningful for directories."""

    @abc.abstractmethod
    async def delete(self) -> None:
        """Delete the entry (recursively for directories)."""


class DirectoryInfo(FileSystemInfo):
    """An entry that can be listed and populated."""

    @abc.abstractmethod
    async def get_items(self) -> list[FileSystemInfo]:
        """Return all direct children.

        The listing is fetched completely before returning; order is not
        significant.
        """

    @abc.abstractmethod
    async def create_file(self, name: str, stream: BinaryIO, length: int) -> FileInfo:
        """Create a child file from ``length`` bytes read from ``stream``."""

    @abc.abstractmethod
    async def create_directory(self, name: str) -> DirectoryInfo:
        """Create a child directory."""


class FileInfo(FileSystemInfo):
    """An entry with readable byte content."""

    @abc.abstractmethod
    async def open_read(self) -> BinaryIO:
        """Open the content for reading. The caller closes the stream."""


class FullName(abc.ABC):
    """An entry that knows its path within the file system."""

    @property
    @abc.abstractmethod
    def full_name(self) -> str: ...


class HashProvider(abc.ABC):
    """An entry that can report precomputed content hashes."""

    @abc.abstractmethod
    def get_hash(self, algorithm_name: str) -> bytes | None:
        """Return the raw hash for ``algorithm_name``, or None if unknown here."""
