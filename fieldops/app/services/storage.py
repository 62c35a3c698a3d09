"""
Binary storage collaborator.

Photos and mission attachments live in external blob storage; the core
only handles opaque storage ids and URLs. `LocalStorageProvider` is the
filesystem backend used in development and tests.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fieldops.app.core.config import settings

logger = logging.getLogger(__name__)


class StorageProvider:
    def generate_upload_url(self) -> tuple[str, str]:
        """Return (storage_id, url) for a one-shot upload."""
        raise NotImplementedError

    def resolve_url(self, storage_id: str) -> Optional[str]:
        """Fetchable URL for a stored object, None if it does not exist."""
        raise NotImplementedError

    def delete(self, storage_id: str) -> None:
        raise NotImplementedError

    def exists(self, storage_id: str) -> bool:
        return self.resolve_url(storage_id) is not None

    def save(self, storage_id: str, content: bytes) -> None:
        raise NotImplementedError

    def path_for(self, storage_id: str) -> Path:
        raise NotImplementedError


class LocalStorageProvider(StorageProvider):
    """Local filesystem storage provider for development."""

    def __init__(self, base_dir: str = None, public_base_url: str = None):
        self.base_dir = Path(base_dir or settings.storage_dir)
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        (self.base_dir / "uploads").mkdir(parents=True, exist_ok=True)

    def _get_path(self, storage_id: str) -> Path:
        # Storage ids are generated here; anything else is rejected
        clean_id = storage_id.replace("/", "").replace("\\", "").replace("..", "")
        if not clean_id or clean_id != storage_id:
            raise ValueError(f"Invalid storage id: {storage_id!r}")
        return self.base_dir / "uploads" / clean_id

    def _file_url(self, storage_id: str) -> str:
        return f"{self.public_base_url}/{settings.api_version}/storage/files/{quote(storage_id)}"

    def generate_upload_url(self) -> tuple[str, str]:
        storage_id = uuid.uuid4().hex
        return storage_id, self._file_url(storage_id)

    def resolve_url(self, storage_id: str) -> Optional[str]:
        try:
            path = self._get_path(storage_id)
        except ValueError:
            return None
        if path.exists():
            return self._file_url(storage_id)
        return None

    def exists(self, storage_id: str) -> bool:
        try:
            return self._get_path(storage_id).exists()
        except ValueError:
            return False

    def save(self, storage_id: str, content: bytes) -> None:
        path = self._get_path(storage_id)
        path.write_bytes(content)
        logger.info("Stored %d bytes under %s", len(content), storage_id)

    def path_for(self, storage_id: str) -> Path:
        return self._get_path(storage_id)

    def delete(self, storage_id: str) -> None:
        path = self._get_path(storage_id)
        if path.exists():
            path.unlink()
            logger.info("Deleted stored object %s", storage_id)


_storage: Optional[StorageProvider] = None


def get_storage() -> StorageProvider:
    """
    Get the storage provider instance.

    Used as a FastAPI dependency; tests override it with a temp-dir provider.
    """
    global _storage
    if _storage is None:
        _storage = LocalStorageProvider()
    return _storage
