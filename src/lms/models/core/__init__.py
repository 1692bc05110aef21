"""Core models shared by every LMS resource."""

from .blob import ImageRef, UploadedFile
from .core_model import ActorRef, CoreModel
from .envelope import (
    DeletionSummary,
    Envelope,
    ErrorKind,
    PaginatedResult,
    error_response,
    success_response,
)
from .requester import Requester

__all__ = [
    "ActorRef",
    "CoreModel",
    "DeletionSummary",
    "Envelope",
    "ErrorKind",
    "ImageRef",
    "PaginatedResult",
    "Requester",
    "UploadedFile",
    "error_response",
    "success_response",
]
