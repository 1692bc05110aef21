"""
Blob references and uploads.

ImageRef is what a resource stores after an upload; UploadedFile is the
transport-neutral shape of a single uploaded file.
"""

from pathlib import PurePath

from pydantic import BaseModel, Field


class ImageRef(BaseModel):
    """Reference to an externally stored blob."""

    file_id: str = Field(..., description="Blob store identifier, used for deletion")
    shareable_link: str | None = Field(default=None, description="Viewable URL")
    download_link: str | None = Field(default=None, description="Direct download URL")


class UploadedFile(BaseModel):
    """A single uploaded file as received from the transport layer."""

    content: bytes = Field(..., repr=False)
    mime_type: str
    original_name: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Lowercased extension without the dot ('' when absent)."""
        return PurePath(self.original_name).suffix.lstrip(".").lower()
