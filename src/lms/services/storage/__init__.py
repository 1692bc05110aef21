"""Blob storage for uploaded images."""

from .base import BlobStore
from .local import LocalBlobStore
from .s3 import S3BlobStore
from .validation import AVATAR_POLICY, PORTRAIT_POLICY, ImagePolicy, validate_file

__all__ = [
    "AVATAR_POLICY",
    "BlobStore",
    "ImagePolicy",
    "LocalBlobStore",
    "PORTRAIT_POLICY",
    "S3BlobStore",
    "validate_file",
]
