"""
LMS services.

- ResourceService: generic list/get/create/update/delete per resource
- ProfileService: privacy-aware user profile projection
- AuditTrail: append-only activity log
- ServiceContainer: builds and injects repositories and services
"""

from .audit import AuditTrail
from .container import ServiceContainer
from .privacy import PrivacyTier, ProfileService
from .resource_service import Access, ResourceDefinition, ResourcePolicy, ResourceService

__all__ = [
    "Access",
    "AuditTrail",
    "PrivacyTier",
    "ProfileService",
    "ResourceDefinition",
    "ResourcePolicy",
    "ResourceService",
    "ServiceContainer",
]
