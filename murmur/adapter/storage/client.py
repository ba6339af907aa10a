"""Object storage client for comment images.

Talks to a Supabase-style storage API:

    POST {url}/storage/v1/object/{bucket}/{path}    upload
    GET  {url}/storage/v1/object/public/{bucket}/{path}    public read
"""

import mimetypes
from uuid import uuid4

import httpx
import logfire

from murmur.adapter.error import StorageError
from murmur.domain.repository import ImageStore


def object_path(folder: str, mime_type: str) -> str:
    """Build a unique object path for an upload.

    Args:
        folder: Folder inside the bucket
        mime_type: Content type used to pick the file extension

    Returns:
        Path like ``comment-images/<uuid>.png``
    """
    extension = mimetypes.guess_extension(mime_type) or ".bin"
    return f"{folder.strip('/')}/{uuid4()}{extension}"


class HttpImageStore(ImageStore):
    """Uploads images over HTTP and returns their public URL."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        bucket: str,
        folder: str,
        public_base_url: str,
        api_key: str | None = None,
    ) -> None:
        """Initialize image store.

        Args:
            client: HTTP client with ``base_url`` and timeout configured
            bucket: Target bucket (must be public)
            folder: Folder inside the bucket
            public_base_url: Prefix for public object URLs
            api_key: Service key sent as a bearer token
        """
        self.client = client
        self.bucket = bucket
        self.folder = folder
        self.public_base_url = public_base_url.rstrip("/")
        self.api_key = api_key

    async def upload_image(self, data: bytes, mime_type: str) -> str | None:
        """Upload an image; returns None instead of raising on failure."""
        path = object_path(self.folder, mime_type)
        with logfire.span(
            "image_store.upload_image",
            path=path,
            mime_type=mime_type,
            size=len(data),
        ):
            try:
                await self._put_object(path, data, mime_type)
            except (StorageError, httpx.HTTPError) as e:
                logfire.error(
                    "Image upload failed",
                    path=path,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None

            url = f"{self.public_base_url}/{path}"
            logfire.info("Image uploaded", path=path, url=url)
            return url

    async def _put_object(self, path: str, data: bytes, mime_type: str) -> None:
        headers = {"Content-Type": mime_type, "x-upsert": "false"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        response = await self.client.post(
            f"/storage/v1/object/{self.bucket}/{path}",
            content=data,
            headers=headers,
        )
        if response.status_code >= 400:
            raise StorageError(
                f"Storage returned {response.status_code}: {response.text[:200]}"
            )


class MockImageStore(ImageStore):
    """In-memory image store for tests.

    Set ``fail`` to simulate an unavailable storage service.
    """

    def __init__(
        self, public_base_url: str = "https://storage.test/public", fail: bool = False
    ) -> None:
        self.public_base_url = public_base_url
        self.fail = fail
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def upload_image(self, data: bytes, mime_type: str) -> str | None:
        """Keep the image in memory and return a fake public URL."""
        if self.fail:
            return None
        path = object_path("comment-images", mime_type)
        self.objects[path] = (data, mime_type)
        return f"{self.public_base_url}/{path}"
