"""
BlobStore - storage for uploaded images.

Resources keep only the ImageRef returned by upload_file; file_id is what
delete_file needs to remove the blob later.
"""

from typing import Protocol, runtime_checkable
from uuid import uuid4

from ...models.core import ImageRef, UploadedFile


@runtime_checkable
class BlobStore(Protocol):
    async def upload_file(self, file: UploadedFile, folder: str = "") -> ImageRef:
        """Store the file and return its reference."""
        ...

    async def delete_file(self, file_id: str) -> None:
        """Remove a stored file (raises BlobStoreError on failure)."""
        ...


def make_file_id(file: UploadedFile, folder: str = "") -> str:
    """Unique key such as 'translators/3f2a...9c.png'."""
    name = uuid4().hex
    if file.extension:
        name = f"{name}.{file.extension}"
    return f"{folder.strip('/')}/{name}" if folder else name
