"""
Local filesystem blob store.

Mirrors S3BlobStore for local development: files live under a root
directory and are addressed by the same folder/name keys.
"""

import asyncio
from pathlib import Path

from loguru import logger

from ...models.core import ImageRef, UploadedFile
from ..errors import BlobStoreError
from .base import make_file_id


class LocalBlobStore:
    """Blob store writing files below a root directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, file_id: str) -> Path:
        path = (self.root / file_id).resolve()
        if self.root.resolve() not in path.parents:
            raise BlobStoreError(f"File id escapes the blob root: {file_id}")
        return path

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def upload_file(self, file: UploadedFile, folder: str = "") -> ImageRef:
        file_id = make_file_id(file, folder)
        path = self._path(file_id)
        try:
            await asyncio.to_thread(self._write, path, file.content)
        except OSError as e:
            raise BlobStoreError(f"Failed to write {file_id}: {e}") from e

        logger.debug(f"Stored {file.original_name} as {path}")
        link = path.as_uri()
        return ImageRef(file_id=file_id, shareable_link=link, download_link=link)

    async def delete_file(self, file_id: str) -> None:
        path = self._path(file_id)
        try:
            await asyncio.to_thread(path.unlink)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete {file_id}: {e}") from e
        logger.debug(f"Deleted local blob {file_id}")
