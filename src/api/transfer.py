"""Binary resource transfer for group messaging.

Images and stickers are uploaded as raw bytes to a group's resource
collection and referenced by the returned ``resourceId`` in later messages.
Remote images are first streamed into a temporary file whose lifetime is
exactly one upload.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple, Union

import httpx

from src.config.settings import DEFAULT_RESOURCE_TMP_DIR
from src.models.base_models import MessagingTarget, Token
from src.models.errors import (
    MalformedResponseError,
    RemoteRejectedError,
    StorageError,
    TransportError,
    UnsupportedVariantError,
)
from src.utils.http_client import (
    AuthenticatedClient,
    RequestDescriptor,
    error_from_call,
    get_httpx_timeout,
)
from src.utils.security import ValidationError, validate_url

logger = logging.getLogger(__name__)

MESSAGING_BASE_URL = os.getenv(
    "PSN_MESSAGING_BASE_URL", "https://m.np.playstation.com/api/gamingLoungeGroups"
)

IMAGE_LINK_PATTERN = re.compile(r"^https?://\S+?\.(?:png|jpe?g)$", re.IGNORECASE)
REMOTE_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
UPLOAD_CONTENT_TYPE = "image/jpeg"
DEFAULT_DOWNLOAD_CONTENT_TYPE = "image/jpeg"


def is_image_link(source: str) -> bool:
    return bool(IMAGE_LINK_PATTERN.match(source))


class ResourceTransferManager:
    """Uploads and downloads group resources through the authenticated client.

    :param http_client: Client used for every PSN call
    :param tmp_dir: Directory holding temporary downloads of remote images
    :param fetch_client: Unauthenticated client for remote image downloads;
        a short-lived one is created per upload when omitted
    """

    def __init__(
        self,
        http_client: AuthenticatedClient,
        tmp_dir: Union[str, Path] = DEFAULT_RESOURCE_TMP_DIR,
        *,
        fetch_client: Optional[httpx.AsyncClient] = None,
        base_url: str = MESSAGING_BASE_URL,
    ) -> None:
        self.http_client = http_client
        self.tmp_dir = Path(tmp_dir)
        self.fetch_client = fetch_client
        self.base_url = base_url

    async def upload(self, target: MessagingTarget, source: str, token: Token) -> str:
        """Upload a local file or remote image link and return its resource id."""
        if is_image_link(source):
            async with self._downloaded(source) as path:
                return await self._upload_bytes(target, self._read(path), token)

        if REMOTE_PATTERN.match(source):
            raise UnsupportedVariantError(
                f"Only .png, .jpg and .jpeg links can be uploaded: {source}"
            )

        return await self._upload_bytes(target, self._read(Path(source)), token)

    async def download(
        self, group_id: str, resource_id: str, token: Token
    ) -> Tuple[bytes, str]:
        """Fetch a resource, returning its bytes and content type."""
        result = await self.http_client.call(
            RequestDescriptor(
                url=f"{self.base_url}/v1/groups/{group_id}/resources/{resource_id}",
                method="GET",
                headers={"Accept": "*/*"},
                binary_response=True,
            ),
            token,
        )
        if not result.ok:
            raise error_from_call(result, "Failed to get resource")

        return result.payload or b"", result.content_type or DEFAULT_DOWNLOAD_CONTENT_TYPE

    async def _upload_bytes(self, target: MessagingTarget, data: bytes, token: Token) -> str:
        result = await self.http_client.call(
            RequestDescriptor(
                url=f"{self.base_url}/v1/groups/{target.group_id}/resources",
                method="POST",
                content_type=UPLOAD_CONTENT_TYPE,
                body=data,
            ),
            token,
        )
        if not result.ok:
            raise error_from_call(result, "Failed to add resource to group")

        resource_id = result.payload.get("resourceId") if isinstance(result.payload, dict) else None
        if not resource_id:
            raise MalformedResponseError(
                "Upload response did not include a resourceId",
                status_code=result.status_code,
                body=result.payload,
            )
        return str(resource_id)

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read resource file {path}: {exc}") from exc

    @asynccontextmanager
    async def _downloaded(self, url: str) -> AsyncIterator[Path]:
        """Stream ``url`` into a temporary file that is removed on exit."""
        try:
            validate_url(url, allowed_schemes=["http", "https"])
        except ValidationError as exc:
            raise UnsupportedVariantError(str(exc)) from exc

        try:
            self.tmp_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(dir=self.tmp_dir, suffix=".dat")
        except OSError as exc:
            raise StorageError(f"Failed to create temporary file: {exc}") from exc

        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                await self._fetch_into(url, handle)
            logger.debug("Downloaded %s to %s", url, path)
            yield path
        finally:
            try:
                path.unlink()
            except FileNotFoundError:
                pass

    async def _fetch_into(self, url: str, handle) -> None:
        try:
            if self.fetch_client is not None:
                await self._stream(self.fetch_client, url, handle)
            else:
                async with httpx.AsyncClient(
                    timeout=get_httpx_timeout(), follow_redirects=True
                ) as client:
                    await self._stream(client, url, handle)
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to download file: {url} ({exc})") from exc
        except OSError as exc:
            raise StorageError(f"Failed to write downloaded file: {exc}") from exc

    @staticmethod
    async def _stream(client: httpx.AsyncClient, url: str, handle) -> None:
        async with client.stream("GET", url) as response:
            if not response.is_success:
                await response.aread()
                raise RemoteRejectedError(
                    f"Failed to download file: {url} ({response.status_code})",
                    status_code=response.status_code,
                    body=response.text,
                )
            async for chunk in response.aiter_bytes():
                handle.write(chunk)


__all__ = ["ResourceTransferManager", "is_image_link", "UPLOAD_CONTENT_TYPE"]
