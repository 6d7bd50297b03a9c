"""
Cloudinary object storage for school images.
Provides the storage key scheme and an injectable client that uploads raw bytes
and returns the public HTTPS URL.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from school_directory.config import settings
from school_directory.services.errors import StorageError
import logging
import asyncio
import os
import secrets
import time
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    """Anything that can store bytes under a key and hand back a public URL."""

    async def upload(self, key: str, data: bytes) -> str:
        ...


def build_storage_key(school_id: Any, filename: Optional[str]) -> str:
    """
    Build a collision-resistant storage key for a school image.

    Keys look like "<school_id>/<epoch-millis>_<random>.<ext>"; the original
    file extension is kept when the filename has one.

    Args:
        school_id: Owning school's identifier
        filename: Original upload filename (may be None)

    Returns:
        str: Storage key namespaced by school
    """
    ext = os.path.splitext(filename or "")[1].lower()
    suffix = f"{int(time.time() * 1000)}_{secrets.token_hex(6)}"
    return f"{school_id}/{suffix}{ext}"


class CloudinaryStorage:
    """
    ObjectStorage backed by Cloudinary.

    The Cloudinary SDK is synchronous, so each upload runs in a worker thread
    and several uploads can be in flight at once.
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "school-images",
        max_retries: int = 3,
    ):
        self.folder = folder
        self.max_retries = max_retries
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True  # Always use HTTPS for secure URLs
        )

    async def upload(self, key: str, data: bytes) -> str:
        """
        Upload bytes under key with retry logic.

        Args:
            key: Storage key from build_storage_key
            data: Raw file content

        Returns:
            str: Secure HTTPS URL of the stored asset

        Raises:
            StorageError: If the upload fails after all retries
        """
        stem, ext = os.path.splitext(key)
        options: Dict[str, Any] = {
            "folder": self.folder,
            "public_id": stem,
            "overwrite": False,
            "resource_type": "image",
            "quality": "auto",
            # Limit max dimensions, maintain aspect ratio
            "transformation": [{"width": 1920, "height": 1080, "crop": "limit"}],
        }
        if ext:
            options["format"] = ext.lstrip(".")

        for attempt in range(self.max_retries):
            try:
                result = await asyncio.to_thread(cloudinary.uploader.upload, data, **options)
                logger.info(f"Successfully uploaded image: {result['public_id']}")
                return result["secure_url"]

            except CloudinaryError as e:
                logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{self.max_retries}) for {key}: {str(e)}")

                # Retry with exponential backoff for transient failures
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                    continue

                logger.error(f"Cloudinary upload failed after {self.max_retries} attempts for {key}: {str(e)}")
                raise StorageError(f"Failed to upload image: {str(e)}")

        raise StorageError(f"Failed to upload image {key}: no upload attempts made")


def get_storage() -> ObjectStorage:
    """
    FastAPI dependency returning the configured object storage client.
    Tests override this to inject a fake.
    """
    return CloudinaryStorage(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        folder=settings.STORAGE_FOLDER,
        max_retries=settings.UPLOAD_MAX_RETRIES,
    )


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME not configured")
        return False
    if not settings.CLOUDINARY_API_KEY:
        logger.warning("CLOUDINARY_API_KEY not configured")
        return False
    if not settings.CLOUDINARY_API_SECRET:
        logger.warning("CLOUDINARY_API_SECRET not configured")
        return False

    logger.info("Cloudinary configuration validated successfully")
    return True
