"""
Resource catalogue.

Every resource served by the API is one ResourceDefinition on the generic
ResourceService. Adding a resource means adding an entry here and a route
in api.routers.resources.
"""

from ..models.entities import (
    ActivityLog,
    Admin,
    Faq,
    Pronoun,
    Publication,
    SiteContent,
    Subject,
    Translator,
    User,
    Writer,
)
from .resource_service import Access, ResourceDefinition, ResourcePolicy
from .storage import AVATAR_POLICY, PORTRAIT_POLICY

ADMIN_ONLY = ResourcePolicy(read=Access.ADMIN, write=Access.ADMIN)

PRONOUNS = ResourceDefinition(
    name="pronouns",
    model=Pronoun,
    type_name="pronouns",
    unique_fields=("name",),
)

FAQS = ResourceDefinition(
    name="faqs",
    model=Faq,
    type_name="faq",
    unique_fields=("question",),
)

SUBJECTS = ResourceDefinition(
    name="subjects",
    model=Subject,
    type_name="subject",
    unique_fields=("name",),
)

TRANSLATORS = ResourceDefinition(
    name="translators",
    model=Translator,
    type_name="translator",
    unique_fields=("name",),
    image_policy=PORTRAIT_POLICY,
)

WRITERS = ResourceDefinition(
    name="writers",
    model=Writer,
    type_name="writer",
    unique_fields=("name",),
    field_mapping={"booksCount": "books_count"},
    image_policy=PORTRAIT_POLICY,
)

PUBLICATIONS = ResourceDefinition(
    name="publications",
    model=Publication,
    type_name="publication",
    unique_fields=("name",),
)

SITE_CONTENT = ResourceDefinition(
    name="site_content",
    model=SiteContent,
    type_name="site content",
    unique_fields=("kind",),
    field_mapping={"type": "kind"},
)

ADMINS = ResourceDefinition(
    name="admins",
    model=Admin,
    type_name="admin",
    unique_fields=("email",),
    image_policy=AVATAR_POLICY,
    policy=ADMIN_ONLY,
)

USERS = ResourceDefinition(
    name="users",
    model=User,
    type_name="user",
    unique_fields=("username",),
    field_mapping={
        "dateOfBirth": "date_of_birth",
        "visibility": "privacy_settings.profile_visibility",
    },
    image_policy=AVATAR_POLICY,
    policy=ADMIN_ONLY,
)

ACTIVITY_LOGS = ResourceDefinition(
    name="activity_logs",
    model=ActivityLog,
    type_name="activity log",
    field_mapping={"user": "actor"},
    policy=ResourcePolicy(read=Access.ADMIN, write=Access.NOBODY),
)

CATALOGUE: tuple[ResourceDefinition, ...] = (
    PRONOUNS,
    FAQS,
    SUBJECTS,
    TRANSLATORS,
    WRITERS,
    PUBLICATIONS,
    SITE_CONTENT,
    ADMINS,
    USERS,
    ACTIVITY_LOGS,
)


def collections() -> dict[str, tuple[str, ...]]:
    """Table name -> unique fields, for schema creation."""
    return {d.name: d.unique_fields for d in CATALOGUE}
