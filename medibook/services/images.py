"""
Image storage for profile pictures.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from uuid import uuid4

from loguru import logger

from medibook.errors import StorageError


class ImageStore(ABC):
    """Sink for uploaded images; returns a URL clients can load."""

    @abstractmethod
    async def save(self, data: bytes, filename: str) -> str:
        """Store image bytes and return their public URL."""


class LocalImageStore(ImageStore):
    """Writes images to a local media directory."""

    def __init__(self, media_dir: str, base_url: str):
        self._media_dir = Path(media_dir)
        self._base_url = base_url.rstrip("/")

    async def save(self, data: bytes, filename: str) -> str:
        suffix = Path(filename).suffix.lower() or ".img"
        name = f"{uuid4().hex}{suffix}"
        path = self._media_dir / name
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            logger.error(f"Failed to save image {filename}: {e}")
            raise StorageError("Image upload failed") from e
        return f"{self._base_url}/{name}"

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
