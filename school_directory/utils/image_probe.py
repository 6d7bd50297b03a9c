"""
Image inspection for uploaded gallery files.
Rejects content Pillow cannot decode before anything is sent to Cloudinary.
"""
import io
import logging
import os
from typing import Optional
from PIL import Image, UnidentifiedImageError

from school_directory.services.errors import ValidationError

logger = logging.getLogger(__name__)

# Formats accepted for school gallery uploads
ALLOWED_FORMATS = {"JPEG", "PNG", "WEBP", "GIF"}

FORMAT_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
    "GIF": ".gif",
}


def get_image_info(image_bytes: bytes) -> Optional[dict]:
    """
    Get basic information about an image.

    Args:
        image_bytes: Image file bytes

    Returns:
        dict: Image information (format, size, mode, bytes) or None if not decodable
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        return {
            'format': image.format,
            'size': image.size,
            'mode': image.mode,
            'bytes': len(image_bytes)
        }
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Error getting image info: {str(e)}")
        return None


def ensure_image(image_bytes: bytes, filename: Optional[str] = None) -> str:
    """
    Check that uploaded bytes are a supported image and return a filename
    whose extension matches the detected format.

    Args:
        image_bytes: Uploaded file content
        filename: Name supplied by the client (may be missing or lack an extension)

    Returns:
        str: Filename to derive the storage key from

    Raises:
        ValidationError: If the file is empty, not an image, or an unsupported format
    """
    label = filename or "upload"
    if not image_bytes:
        raise ValidationError(f"File '{label}' is empty")

    info = get_image_info(image_bytes)
    if info is None:
        raise ValidationError(f"File '{label}' is not a valid image file")
    if info['format'] not in ALLOWED_FORMATS:
        raise ValidationError(f"File '{label}' has unsupported format {info['format']}")

    stem, ext = os.path.splitext(filename or "")
    if not ext:
        return f"{stem or 'upload'}{FORMAT_EXTENSIONS[info['format']]}"
    return filename
