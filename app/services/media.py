"""Shared-picture hosting on Cloudinary.

Uploads and deletions go through the Cloudinary SDK. They are always made
outside any database transaction; callers store or clear the returned URL
afterwards.
"""

import io
import logging
from typing import Optional, Protocol

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from app.core.config import Settings, settings as default_settings
from app.core.errors import MediaGatewayError

logger = logging.getLogger(__name__)


class MediaGateway(Protocol):
    def upload_image(self, data: bytes, public_id: str, content_type: str) -> str: ...

    def delete_image(self, public_id: str) -> None: ...


def couple_public_id(couple_id: int) -> str:
    return f"couple_{couple_id}"


class CloudinaryMediaGateway:
    def __init__(self, folder: str = "twofold_shared", timeout: float = 10.0):
        self.folder = folder
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CloudinaryMediaGateway":
        s = settings or default_settings
        if not (s.CLOUDINARY_CLOUD_NAME and s.CLOUDINARY_API_KEY and s.CLOUDINARY_API_SECRET):
            raise MediaGatewayError("configure")
        cloudinary.config(
            cloud_name=s.CLOUDINARY_CLOUD_NAME,
            api_key=s.CLOUDINARY_API_KEY,
            api_secret=s.CLOUDINARY_API_SECRET,
            secure=True,
        )
        return cls(folder=s.MEDIA_FOLDER, timeout=s.MEDIA_TIMEOUT_SECONDS)

    def upload_image(self, data: bytes, public_id: str, content_type: str = "image/jpeg") -> str:
        """Upload (overwriting) an image and return its https URL."""
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                public_id=public_id,
                folder=self.folder,
                overwrite=True,
                invalidate=True,
                resource_type="image",
                timeout=self.timeout,
            )
        except cloudinary.exceptions.Error as e:
            logger.error(f"Cloudinary upload failed: {e}")
            raise MediaGatewayError("upload") from e

        url = result.get("secure_url")
        if not url:
            logger.error(f"Cloudinary upload returned no secure_url: {result}")
            raise MediaGatewayError("upload")
        return url

    def delete_image(self, public_id: str) -> None:
        try:
            result = cloudinary.uploader.destroy(
                f"{self.folder}/{public_id}",
                invalidate=True,
                resource_type="image",
                timeout=self.timeout,
            )
        except cloudinary.exceptions.Error as e:
            logger.error(f"Cloudinary destroy failed: {e}")
            raise MediaGatewayError("delete") from e

        # "not found" means there was nothing to delete
        if result.get("result") not in ("ok", "not found"):
            logger.error(f"Cloudinary destroy failed: {result}")
            raise MediaGatewayError("delete")
