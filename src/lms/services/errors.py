"""
Internal exceptions raised by repositories and blob stores.

These never cross the service boundary: ResourceService and ProfileService
translate them into Envelope results.
"""


class LmsError(Exception):
    """Base class for LMS errors."""


class RepositoryError(LmsError):
    """Persistence failure."""


class DuplicateKeyError(RepositoryError):
    """A unique field already holds the given value."""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f'Duplicate value "{value}" for unique field "{field}"')


class BlobStoreError(LmsError):
    """Blob upload or deletion failure."""


class FileValidationError(LmsError):
    """Uploaded file rejected by an image policy."""


def describe_validation_error(error) -> str:
    """One-line summary of a pydantic ValidationError ('field: message; ...')."""
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "body"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)
