# catalog_engine/services/media_service.py
import logging
from dataclasses import dataclass
from typing import Iterable

from catalog_engine.core.errors import ValidationError
from catalog_engine.core.storage_utils import generate_filename

logger = logging.getLogger(__name__)


# --- Image config ---

DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class MediaUpload:
    """
    A raw file received with a mutation request.
    """

    filename: str
    content_type: str
    data: bytes


class MediaManager:
    """
    Uploads raw file buffers to the media store and deletes URLs on request.

    Stateless: every call is independent. `store` is anything with
    `upload(path, data, content_type) -> url` and `delete(url)`, normally
    a SupabaseMediaStore.
    """

    def __init__(
        self,
        store,
        max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        prefix: str = "catalog",
    ):
        self.store = store
        self.max_bytes = max_bytes
        self.prefix = prefix

    def _validate_and_get_ext(self, file: MediaUpload) -> str:
        if file.content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise ValidationError(
                f"Unsupported image type for '{file.filename}'. Allowed: JPEG, PNG, WEBP."
            )

        if not file.data:
            raise ValidationError(f"Uploaded file '{file.filename}' is empty.")

        if len(file.data) > self.max_bytes:
            raise ValidationError(
                f"Image '{file.filename}' too large (max {self.max_bytes // (1024 * 1024)}MB)."
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[file.content_type]

    def upload(self, file: MediaUpload) -> str:
        """
        Upload one file to a random path and return its public URL.

        Path pattern:
            <prefix>/<uuid>.<ext>

        Raises:
            ValidationError: unsupported type, empty or oversized file.
            Any store exception (including timeouts) as-is.
        """
        ext = self._validate_and_get_ext(file)
        path = f"{self.prefix}/{generate_filename(ext)}"
        url = self.store.upload(path, file.data, file.content_type)
        logger.debug("Uploaded %s to %s", file.filename, url)
        return url

    def delete(self, url: str) -> None:
        self.store.delete(url)

    def purge(self, urls: Iterable[str], reason: str) -> list[str]:
        """
        Best-effort deletion of every URL.

        Individual failures are logged and skipped, never raised.

        Returns:
            The URLs that could not be deleted.
        """
        urls = list(urls)
        if not urls:
            return []

        logger.info("Purging %d media file(s): %s", len(urls), reason)
        failed: list[str] = []
        for url in urls:
            try:
                self.store.delete(url)
            except Exception as exc:
                logger.warning("Failed to delete media %s: %s", url, exc)
                failed.append(url)
        return failed
