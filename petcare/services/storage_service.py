"""Binary object storage for animal photos and videos.

``FirebaseStorageService`` writes blobs to the configured Firebase Storage
bucket. ``InMemoryStorageService`` keeps bytes in a dict and is used in mock
mode and in tests. ``get_storage_service()`` picks one the same way the
stores do.
"""

import abc
import logging
import threading
import uuid
from datetime import timedelta
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from petcare.config import settings
from petcare.db.firestore import get_storage_bucket, is_mock_mode
from petcare.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PHOTO_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".tiff"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv", ".webm", ".mpeg"})

_MB = 1024 * 1024


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


def media_kind(filename: str) -> MediaKind:
    """Return the media kind implied by the extension of *filename*."""
    extension = PurePosixPath(filename or "").suffix.lower()
    if extension in PHOTO_EXTENSIONS:
        return MediaKind.PHOTO
    if extension in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    raise ValidationError(
        f"Unsupported file type '{extension or filename}'", code="unsupported_media_type"
    )


def size_limit(kind: MediaKind) -> int:
    """Maximum upload size in bytes for *kind*."""
    limit_mb = settings.MAX_PHOTO_SIZE_MB if kind is MediaKind.PHOTO else settings.MAX_VIDEO_SIZE_MB
    return limit_mb * _MB


def check_size(kind: MediaKind, size: int) -> None:
    if size <= 0:
        raise ValidationError("Uploaded file is empty", code="empty_file")
    if size > size_limit(kind):
        raise ValidationError(
            f"{kind.value.capitalize()} exceeds the {size_limit(kind) // _MB} MB limit",
            code="file_too_large",
        )


def classify_upload(filename: str, size: int) -> MediaKind:
    """Return the media kind for *filename*, enforcing extension and size limits."""
    kind = media_kind(filename)
    check_size(kind, size)
    return kind


def object_name(kind: MediaKind, filename: str) -> str:
    """Return a unique storage name that keeps the original extension."""
    extension = PurePosixPath(filename).suffix.lower()
    return f"{kind.value}s/{uuid.uuid4()}{extension}"


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------

class StorageService(abc.ABC):
    """Common interface for binary object storage."""

    @abc.abstractmethod
    def upload_file(self, name: str, data: bytes, content_type: str | None) -> str:
        """Store *data* under *name* and return its public URL."""

    @abc.abstractmethod
    def delete_file(self, url_or_name: str) -> None:
        """Delete an object by URL or name. Raises ``NotFoundError`` when missing."""

    @abc.abstractmethod
    def generate_presigned_url(self, name: str, expiry_seconds: int | None = None) -> str:
        """Return a time-limited download URL for *name*."""


# ---------------------------------------------------------------------------
# In-memory implementation (mock / test mode)
# ---------------------------------------------------------------------------

class InMemoryStorageService(StorageService):
    """Dict-backed storage serving URLs under ``MEDIA_BASE_URL``."""

    def __init__(self, base_url: str | None = None) -> None:
        self._lock = threading.Lock()
        self._objects: dict[str, tuple[bytes, str | None]] = {}
        self.base_url = (base_url or settings.MEDIA_BASE_URL).rstrip("/")

    def _name(self, url_or_name: str) -> str:
        prefix = f"{self.base_url}/"
        if url_or_name.startswith(prefix):
            return url_or_name[len(prefix):]
        return url_or_name

    def upload_file(self, name: str, data: bytes, content_type: str | None) -> str:
        with self._lock:
            self._objects[name] = (data, content_type)
        return f"{self.base_url}/{name}"

    def delete_file(self, url_or_name: str) -> None:
        name = self._name(url_or_name)
        with self._lock:
            if self._objects.pop(name, None) is None:
                raise NotFoundError(f"Stored object '{name}' not found", code="file_not_found")

    def generate_presigned_url(self, name: str, expiry_seconds: int | None = None) -> str:
        ttl = expiry_seconds or settings.PRESIGNED_URL_TTL
        return f"{self.base_url}/{self._name(name)}?expires={ttl}"

    def exists(self, url_or_name: str) -> bool:
        return self._name(url_or_name) in self._objects


# ---------------------------------------------------------------------------
# Firebase Storage implementation
# ---------------------------------------------------------------------------

class FirebaseStorageService(StorageService):
    """Blobs in the Firebase Storage bucket named by ``FIREBASE_STORAGE_BUCKET``."""

    def __init__(self) -> None:
        self.bucket = get_storage_bucket()

    def _name(self, url_or_name: str) -> str:
        if not url_or_name.startswith(("http://", "https://")):
            return url_or_name
        path = unquote(urlparse(url_or_name).path).lstrip("/")
        bucket_prefix = f"{self.bucket.name}/"
        if path.startswith(bucket_prefix):
            return path[len(bucket_prefix):]
        return path

    def upload_file(self, name: str, data: bytes, content_type: str | None) -> str:
        blob = self.bucket.blob(name)
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
        logger.info("Uploaded %s (%d bytes)", name, len(data))
        return blob.public_url

    def delete_file(self, url_or_name: str) -> None:
        name = self._name(url_or_name)
        blob = self.bucket.blob(name)
        if not blob.exists():
            raise NotFoundError(f"Stored object '{name}' not found", code="file_not_found")
        blob.delete()
        logger.info("Deleted %s", name)

    def generate_presigned_url(self, name: str, expiry_seconds: int | None = None) -> str:
        blob = self.bucket.blob(self._name(name))
        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=expiry_seconds or settings.PRESIGNED_URL_TTL),
            method="GET",
        )


# ---------------------------------------------------------------------------
# Singleton factory
# ---------------------------------------------------------------------------
_service: StorageService | None = None


def get_storage_service() -> StorageService:
    """Return the singleton ``StorageService`` instance."""
    global _service
    if _service is None:
        if is_mock_mode():
            logger.info("Using InMemoryStorageService (mock mode)")
            _service = InMemoryStorageService()
        else:
            logger.info("Using FirebaseStorageService")
            _service = FirebaseStorageService()
    return _service
