"""
Image Store Client

Job images live in an external image service. The core only ever needs two
operations, both keyed by the service's own identifiers:

    upload(content, filename) -> ImageRef(remote_id, url, original_name)
    release(remote_id)        -> True if deleted, False if nothing was done;
                                 raises ImageStoreError on failure

HttpImageStore talks to a service over HTTP; NullImageStore is used when no
service is configured, so releases are logged no-ops (returning False)
and uploads fail.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from app.errors import ImageStoreError
from app.schemas import ImageRef

logger = logging.getLogger(__name__)


class ImageStore(ABC):
    """Base class for image stores"""

    @abstractmethod
    async def upload(self, content: bytes, filename: str, content_type: str = "image/jpeg") -> ImageRef:
        """Store an image and return its reference"""
        pass

    @abstractmethod
    async def release(self, remote_id: str) -> bool:
        """Delete a stored image. False means the store did nothing."""
        pass


class HttpImageStore(ImageStore):
    """Image service client. Expects POST /images and DELETE /images/{id}."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str = "",
        folder: str = "jobs",
        timeout: float = 10.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.folder = folder
        self.timeout = timeout

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    async def upload(self, content: bytes, filename: str, content_type: str = "image/jpeg") -> ImageRef:
        try:
            response = await self.client.post(
                f"{self.base_url}/images",
                files={"file": (filename, content, content_type)},
                data={"folder": self.folder},
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
            return ImageRef(
                remote_id=data["public_id"],
                url=data["secure_url"],
                original_name=filename,
            )
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error(f"Image upload failed for {filename!r}: {e}")
            raise ImageStoreError(f"Image upload failed: {filename}") from e

    async def release(self, remote_id: str) -> bool:
        try:
            response = await self.client.delete(
                f"{self.base_url}/images/{remote_id}",
                headers=self.headers,
                timeout=self.timeout,
            )
            # Already gone counts as released
            if response.status_code != 404:
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageStoreError(f"Image release failed: {remote_id}") from e
        return True


class NullImageStore(ImageStore):
    async def upload(self, content: bytes, filename: str, content_type: str = "image/jpeg") -> ImageRef:
        raise ImageStoreError("Image uploads are not configured")

    async def release(self, remote_id: str) -> bool:
        logger.info(f"No image service configured, skipping release of {remote_id}")
        return False
