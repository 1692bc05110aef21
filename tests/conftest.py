"""
Pytest configuration and fixtures for LMS tests.
"""

import pytest

from lms.models.core import ImageRef, Requester, UploadedFile
from lms.services import ServiceContainer
from lms.services.errors import BlobStoreError


class StubBlobStore:
    """Records uploads and deletions; deletions can be made to fail."""

    def __init__(self, fail_deletes: bool = False):
        self.fail_deletes = fail_deletes
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.delete_attempts: list[str] = []

    async def upload_file(self, file: UploadedFile, folder: str = "") -> ImageRef:
        file_id = f"{folder}/{len(self.uploaded) + 1}.{file.extension}"
        self.uploaded.append(file_id)
        return ImageRef(
            file_id=file_id,
            shareable_link=f"https://blobs.test/{file_id}",
            download_link=f"https://blobs.test/{file_id}?download=1",
        )

    async def delete_file(self, file_id: str) -> None:
        self.delete_attempts.append(file_id)
        if self.fail_deletes:
            raise BlobStoreError(f"cannot delete {file_id}")
        self.deleted.append(file_id)


@pytest.fixture
def blob_store() -> StubBlobStore:
    return StubBlobStore()


@pytest.fixture
def container(blob_store: StubBlobStore) -> ServiceContainer:
    """In-memory services wired to the stub blob store."""
    return ServiceContainer.in_memory(blob_store=blob_store)


@pytest.fixture
def admin() -> Requester:
    return Requester(id="admin-1", is_admin=True, name="Ada Admin")


@pytest.fixture
def member() -> Requester:
    return Requester(id="user-1", name="Mina Member")


@pytest.fixture
def png() -> UploadedFile:
    return UploadedFile(content=b"\x89PNG" + b"0" * 64, mime_type="image/png", original_name="face.png")
