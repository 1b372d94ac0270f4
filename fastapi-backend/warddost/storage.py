"""
Object storage for complaint photos.

`STORAGE_PROVIDER=s3` uploads through `storage_s3.S3Storage`; `local` writes
under `LOCAL_STORAGE_DIR`, which the app serves at `/storage`. Unlike a silent
fallback, a failed upload raises `StorageError` so the caller can report the
partial failure.
"""

from pathlib import Path
from typing import Optional, Tuple, Union
import logging
import time

from fastapi.concurrency import run_in_threadpool

from .config import get_settings
from .photo_utils import get_extension, get_mime_type
from .storage_s3 import S3Storage, StorageError

logger = logging.getLogger("warddost.storage")


class LocalStorage:
    """Filesystem backend for development and tests."""

    def __init__(self, root: Union[str, Path], public_base_url: str) -> None:
        self.root = Path(root)
        self._public_base_url = public_base_url.rstrip("/")

    def put_object(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        path = self.root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Could not write {path}: {exc}") from exc

    def delete_object(self, key: str) -> None:
        (self.root / key).unlink(missing_ok=True)

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/storage/{key}"


_backend: Optional[Union[S3Storage, LocalStorage]] = None


def get_storage() -> Union[S3Storage, LocalStorage]:
    global _backend
    if _backend is None:
        settings = get_settings()
        if settings.storage_provider == "s3":
            _backend = S3Storage(settings)
        else:
            _backend = LocalStorage(settings.local_storage_dir, settings.public_base_url)
        logger.info("Storage initialized (provider=%s)", settings.storage_provider)
    return _backend


def build_image_key(user_id: str, complaint_id: str, file_name: Optional[str]) -> str:
    """`{user_id}/{complaint_id}/{epoch_millis}.{ext}`, one folder per complaint."""
    extension = get_extension(file_name) or "jpg"
    return f"{user_id}/{complaint_id}/{int(time.time() * 1000)}.{extension}"


async def store_complaint_image(
    data: bytes, file_name: Optional[str], user_id: str, complaint_id: str
) -> Tuple[str, str]:
    """Upload the image and return (storage key, public URL)."""
    backend = get_storage()
    key = build_image_key(user_id, complaint_id, file_name)
    await run_in_threadpool(backend.put_object, key, data, get_mime_type(file_name))
    return key, backend.public_url(key)


async def discard_object(key: str) -> None:
    """Remove an upload whose database record could not be written."""
    try:
        await run_in_threadpool(get_storage().delete_object, key)
    except StorageError as exc:
        logger.warning("Could not remove orphaned upload %s: %s", key, exc)


__all__ = ["LocalStorage", "get_storage", "build_image_key", "store_complaint_image", "discard_object"]
