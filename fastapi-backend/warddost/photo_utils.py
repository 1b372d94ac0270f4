"""
Photo validation for complaint evidence.

Uses Pillow (PIL) to make sure an upload really is an image before it is sent
to object storage.
"""

from PIL import Image, UnidentifiedImageError
import io
from typing import Optional
import logging

logger = logging.getLogger("warddost.photo_utils")

MAX_IMAGE_DIMENSION = 8000  # pixels
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

_MIME_BY_EXTENSION = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


class ImageValidationError(ValueError):
    """Raised when an uploaded file is not an acceptable image."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


def get_extension(file_name: Optional[str]) -> str:
    if not file_name or "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


def get_mime_type(file_name: Optional[str]) -> str:
    """Get MIME type from file extension."""
    return _MIME_BY_EXTENSION.get(get_extension(file_name), "application/octet-stream")


def validate_image(file_data: bytes, file_name: Optional[str], max_bytes: int) -> None:
    """Raise ImageValidationError unless ``file_data`` is a usable image."""
    if not file_data:
        raise ImageValidationError("Uploaded file is empty")

    if len(file_data) > max_bytes:
        raise ImageValidationError(
            f"File size exceeds {max_bytes / (1024 * 1024):.1f} MB limit", status_code=413
        )

    ext = "." + get_extension(file_name)
    if ext not in ALLOWED_EXTENSIONS:
        raise ImageValidationError(
            f"File type not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    try:
        img = Image.open(io.BytesIO(file_data))
        img.verify()
        # verify() leaves the image unusable; reopen to read the size.
        width, height = Image.open(io.BytesIO(file_data)).size
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning("Image validation failed for %s: %s", file_name, e)
        raise ImageValidationError(f"Invalid image file: {e}") from e

    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ImageValidationError(f"Image dimensions exceed {MAX_IMAGE_DIMENSION}px")
