"""Image store interface."""

from abc import ABC, abstractmethod


class ImageStore(ABC):
    """Object store for images attached to comments."""

    @abstractmethod
    async def upload_image(self, data: bytes, mime_type: str) -> str | None:
        """Upload an image and return its public URL.

        Uploads are best-effort: failures are logged and reported as None
        so that comment creation can continue without the image.

        Args:
            data: Raw file bytes
            mime_type: Content type, e.g. ``image/png``

        Returns:
            Public URL, or None if the upload failed
        """
        pass
