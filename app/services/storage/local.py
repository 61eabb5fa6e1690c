import logging
from pathlib import Path

import aiofiles

from app.exceptions import StorageError
from app.services.storage.base import BlobStorage

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """Stores blobs as files under a base directory, served from a public base URL."""

    def __init__(self, base_dir: str, public_base_url: str):
        self.base_dir = Path(base_dir).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def _full_path(self, key: str) -> Path:
        path = (self.base_dir / key.lstrip("/")).resolve()
        if not path.is_relative_to(self.base_dir):
            raise StorageError(f"Invalid storage key: {key!r}")
        return path

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        path = self._full_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as exc:
            raise StorageError(f"Failed to upload {key}: {exc}") from exc
        logger.info(f"Stored {len(data)} bytes at {key} ({content_type})")
        return key

    def get_public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key.lstrip('/')}"

    async def delete(self, key: str) -> None:
        path = self._full_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc
