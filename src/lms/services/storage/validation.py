"""Upload validation against per-resource image policies."""

from dataclasses import dataclass

from ...models.core import UploadedFile
from ..errors import FileValidationError

MB = 1024 * 1024

JPEG = "image/jpeg"
PNG = "image/png"
WEBP = "image/webp"


@dataclass(frozen=True)
class ImagePolicy:
    """Accepted uploads for one resource."""

    max_size: int = 2 * MB
    allowed_types: tuple[str, ...] = (JPEG, PNG)
    allowed_extensions: tuple[str, ...] = ("jpg", "jpeg", "png")


# Portraits of translators and writers
PORTRAIT_POLICY = ImagePolicy(max_size=int(1.1 * MB))
AVATAR_POLICY = ImagePolicy(
    max_size=2 * MB,
    allowed_types=(JPEG, PNG, WEBP),
    allowed_extensions=("jpg", "jpeg", "png", "webp"),
)


def format_size(size: int) -> str:
    return f"{size / MB:g}MB"


def validate_file(file: UploadedFile, policy: ImagePolicy) -> None:
    """
    Check MIME type, size and extension, in that order.

    Raises:
        FileValidationError: naming the first rule the file breaks
    """
    if file.mime_type not in policy.allowed_types:
        raise FileValidationError(
            f"Invalid file type. Allowed types are: {', '.join(policy.allowed_types)}."
        )
    if file.size > policy.max_size:
        raise FileValidationError(
            f"File size should not exceed {format_size(policy.max_size)}."
        )
    if policy.allowed_extensions and file.extension not in policy.allowed_extensions:
        raise FileValidationError(
            "Invalid file extension. Allowed extensions are: "
            f"{', '.join(policy.allowed_extensions)}."
        )
