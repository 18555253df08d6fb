"""Async client for a OneDrive-style drive exposed over Microsoft Graph.

Covers the item operations the filesystem layer needs: lookup, listing,
folder creation, deletion, download and resumable chunked upload.
"""

from __future__ import annotations

import asyncio
import tempfile
from collections.abc import Callable
from typing import Any, BinaryIO, NoReturn
from urllib.parse import quote

import httpx

from drive_vault.core.exceptions import (
    ChunkUploadError,
    ContentNotAvailableError,
    OneDriveError,
)
from drive_vault.core.models import ChunkUploadErrorEvent, DriveItem, StoreConfig
from drive_vault.logging import get_logger

log = get_logger(__name__)

ChunkErrorHandler = Callable[[ChunkUploadErrorEvent], bool]

# Error message the store returns when downloading an item without content
NO_CONTENT_MESSAGE = "The specified item does not have content"

# Downloads larger than this spill from memory to a temp file
_SPOOL_MAX_SIZE = 8 * 1024 * 1024


class OneDriveClient:
    """Thin async wrapper over the drive REST endpoints."""

    def __init__(
            self,
            api_url: str = "https://graph.microsoft.com/v1.0/me/drive",
            access_token: str | None = None,
            timeout: float = 60.0,
            http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self._access_token = access_token
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: StoreConfig) -> OneDriveClient:
        token = config.access_token.get_secret_value() if config.access_token else None
        return cls(api_url=config.api_url, access_token=token, timeout=config.timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> OneDriveClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ──────────────────── Item lookup ────────────────────

    async def get_root(self) -> DriveItem:
        """Fetch the drive's root folder."""
        response = await self._request("GET", f"{self.api_url}/root")
        return DriveItem.model_validate(response.json())

    async def get_item_by_path(self, path: str) -> DriveItem:
        """Fetch an item by its path relative to the drive root."""
        path = path.strip("/")
        if not path:
            return await self.get_root()
        response = await self._request("GET", f"{self.api_url}/root:/{quote(path)}")
        return DriveItem.model_validate(response.json())

    async def list_children(self, item: DriveItem) -> list[DriveItem]:
        """Return every child of a folder, following continuation links."""
        children: list[DriveItem] = []
        url: str | None = f"{self.api_url}/items/{item.id}/children"
        while url:
            response = await self._request("GET", url)
            payload = response.json()
            children.extend(DriveItem.model_validate(v) for v in payload.get("value", []))
            url = payload.get("@odata.nextLink")

        log.debug("onedrive_list_children", item_id=item.id, count=len(children))
        return children

    # ──────────────────── Mutations ──────────────────────

    async def delete(self, item: DriveItem) -> None:
        """Delete an item (recursively for folders)."""
        await self._request("DELETE", f"{self.api_url}/items/{item.id}")
        log.info("onedrive_delete_complete", item_id=item.id, name=item.name)

    async def create_folder(self, parent: DriveItem, name: str) -> DriveItem:
        """Create a child folder, failing if the name is already taken."""
        body = {
            "name": name,
            "folder": {},
            "@microsoft.graph.conflictBehavior": "fail",
        }
        response = await self._request(
            "POST", f"{self.api_url}/items/{parent.id}/children", json=body,
        )
        log.info("onedrive_folder_created", parent_id=parent.id, name=name)
        return DriveItem.model_validate(response.json())

    async def download(self, item: DriveItem) -> BinaryIO:
        """Download an item's content into a rewound, readable stream.

        Raises:
            ContentNotAvailableError: The item has no byte content.
            OneDriveError: Any other failure reported by the store.
        """
        url = f"{self.api_url}/items/{item.id}/content"
        buffer = tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX_SIZE)
        try:
            async with self._http.stream(
                    "GET", url, headers=self._auth_headers(), follow_redirects=True,
            ) as response:
                if response.is_error:
                    await response.aread()
                    _raise_for_error(response)
                async for chunk in response.aiter_bytes():
                    buffer.write(chunk)
        except httpx.TransportError as exc:
            buffer.close()
            raise OneDriveError(f"Download of {item.name!r} failed: {exc}") from exc
        except BaseException:
            buffer.close()
            raise

        buffer.seek(0)
        log.debug("onedrive_download_complete", item_id=item.id, size=item.size)
        return buffer  # type: ignore[return-value]

    async def upload_file(
            self,
            parent: DriveItem,
            name: str,
            stream: BinaryIO,
            length: int,
            chunk_size: int,
            on_chunk_error: ChunkErrorHandler | None = None,
    ) -> DriveItem:
        """Upload a stream as a new child of ``parent`` through an upload session.

        Chunks are sent sequentially. When a chunk fails, ``on_chunk_error`` is
        called with the number of retries already made for that chunk; a true
        result resends the chunk, anything else aborts the upload.

        Raises:
            ChunkUploadError: A chunk failed and was not retried.
        """
        if length == 0:
            return await self._upload_empty(parent, name)

        session_url = f"{self.api_url}/items/{parent.id}:/{quote(name, safe='')}:/createUploadSession"
        body = {"item": {"@microsoft.graph.conflictBehavior": "replace"}}
        session = (await self._request("POST", session_url, json=body)).json()
        upload_url: str = session["uploadUrl"]

        log.info("onedrive_upload_start", parent_id=parent.id, name=name, size=length)

        offset = 0
        result: dict[str, Any] | None = None
        try:
            while offset < length:
                data = stream.read(min(chunk_size, length - offset))
                if not data:
                    raise OneDriveError(
                        f"Stream for {name!r} ended at {offset} of {length} bytes"
                    )
                result = await self._send_chunk(
                    upload_url, data, offset, length, on_chunk_error,
                )
                offset += len(data)
        except BaseException:
            await asyncio.shield(self._cancel_session(upload_url))
            raise

        if result is None:
            raise OneDriveError(f"Upload of {name!r} finished without an item")

        log.info("onedrive_upload_complete", name=name, size=length)
        return DriveItem.model_validate(result)

    # ──────────────────── Internal helpers ───────────────

    async def _upload_empty(self, parent: DriveItem, name: str) -> DriveItem:
        """Upload sessions reject zero-length content; use a simple PUT."""
        url = f"{self.api_url}/items/{parent.id}:/{quote(name, safe='')}:/content"
        response = await self._request("PUT", url, content=b"")
        log.info("onedrive_upload_complete", name=name, size=0)
        return DriveItem.model_validate(response.json())

    async def _send_chunk(
            self,
            upload_url: str,
            data: bytes,
            offset: int,
            total: int,
            on_chunk_error: ChunkErrorHandler | None,
    ) -> dict[str, Any] | None:
        """PUT one chunk, retrying while the error handler allows it.

        Returns the created item payload once the final chunk is accepted.
        """
        end = offset + len(data) - 1
        headers = {
            "Content-Length": str(len(data)),
            "Content-Range": f"bytes {offset}-{end}/{total}",
        }
        attempt = 0
        while True:
            try:
                # The upload URL is pre-authenticated; no bearer token
                response = await self._http.put(upload_url, content=data, headers=headers)
                if response.is_error:
                    _raise_for_error(response)
            except (httpx.TransportError, OneDriveError) as exc:
                event = ChunkUploadErrorEvent(
                    attempt_count=attempt,
                    offset=offset,
                    length=len(data),
                    total_length=total,
                    exception=exc,
                )
                if on_chunk_error is None or not on_chunk_error(event):
                    log.error(
                        "onedrive_chunk_failed",
                        offset=offset,
                        attempts=attempt + 1,
                        error=str(exc),
                    )
                    raise ChunkUploadError(
                        f"Chunk at offset {offset} failed after {attempt + 1} attempt(s): {exc}",
                        status_code=getattr(exc, "status_code", None),
                    ) from exc
                attempt += 1
                log.warning("onedrive_chunk_retry", offset=offset, attempt=attempt, error=str(exc))
                continue

            if response.status_code == httpx.codes.ACCEPTED:
                return None
            return response.json()

    async def _cancel_session(self, upload_url: str) -> None:
        try:
            await self._http.delete(upload_url)
        except httpx.HTTPError as exc:
            log.warning("onedrive_upload_cancel_failed", error=str(exc))

    def _auth_headers(self) -> dict[str, str]:
        if not self._access_token:
            return {}
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request and map failures to OneDriveError."""
        try:
            response = await self._http.request(
                method, url, headers=self._auth_headers(), **kwargs,
            )
        except httpx.TransportError as exc:
            raise OneDriveError(f"{method} {url} failed: {exc}") from exc

        if response.is_error:
            _raise_for_error(response)
        return response


def _raise_for_error(response: httpx.Response) -> NoReturn:
    """Raise the exception matching an error response from the store."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        message = error.get("message") or response.reason_phrase
        code = error.get("code")
    else:
        message = response.text or response.reason_phrase
        code = None

    if NO_CONTENT_MESSAGE in message:
        raise ContentNotAvailableError(message, status_code=response.status_code, code=code)
    raise OneDriveError(message, status_code=response.status_code, code=code)
