"""
Privacy projection of user profiles.

Which fields of a profile a requester sees depends on who is asking and on
the target's stored privacy_settings.profile_visibility:

1. visibility defaults to public when unset
2. private profiles are closed to everyone except the owner and admins;
   the check runs before any field selection and discloses nothing
3. otherwise the tier is chosen by precedence
   self > admin > authenticated (friends) > anonymous (public)
4. the profile is read through a projection of exactly the tier's fields;
   the stored id is excluded unless a tier lists it (admins see everything)

Identity comparison is on normalized string ids (see Requester.is_same).
"""

from enum import Enum
from http import HTTPStatus

from loguru import logger

from ..models.core import Envelope, ErrorKind, Requester, error_response, success_response
from ..models.entities import ProfileVisibility, User
from .query import Projection, QueryFilter
from .repositories import Repository


class PrivacyTier(str, Enum):
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"
    SELF = "self"
    ADMIN = "admin"


PUBLIC_FIELDS = ("name", "username", "bio")

TIER_FIELDS: dict[PrivacyTier, tuple[str, ...]] = {
    PrivacyTier.PUBLIC: PUBLIC_FIELDS,
    PrivacyTier.FRIENDS: PUBLIC_FIELDS
    + ("date_of_birth", "pronouns", "company", "social_accounts", "url"),
    PrivacyTier.SELF: (
        "name",
        "username",
        "image",
        "date_of_birth",
        "bio",
        "pronouns",
        "emails",
        "mobiles",
        "address",
        "two_factor_enabled",
        "company",
        "url",
        "social_accounts",
        "privacy_settings",
    ),
    PrivacyTier.PRIVATE: (),
    PrivacyTier.ADMIN: ("*",),
}


def stored_visibility(user: User) -> ProfileVisibility:
    privacy = getattr(user, "privacy_settings", None)
    visibility = getattr(privacy, "profile_visibility", None)
    return ProfileVisibility(visibility) if visibility else ProfileVisibility.PUBLIC


def resolve_tier(
    requester: Requester | None,
    target_id: str | None,
    visibility: ProfileVisibility | None,
) -> PrivacyTier:
    """
    Tier whose fields the requester may see.

    Returns PrivacyTier.PRIVATE when access must be refused.
    """
    visibility = visibility or ProfileVisibility.PUBLIC
    is_self = requester is not None and requester.is_same(target_id)
    is_admin = requester is not None and requester.is_admin

    if visibility is ProfileVisibility.PRIVATE and not (is_self or is_admin):
        return PrivacyTier.PRIVATE
    if is_self:
        return PrivacyTier.SELF
    if is_admin:
        return PrivacyTier.ADMIN
    if requester is not None:
        return PrivacyTier.FRIENDS
    return PrivacyTier.PUBLIC


def build_projection(tier: PrivacyTier) -> Projection:
    return Projection.of(TIER_FIELDS[tier])


class ProfileService:
    """Privacy-aware profile reads over the users repository."""

    def __init__(self, users: Repository[User]):
        self.users = users

    async def get_profile(self, requester: Requester | None, username: str) -> Envelope:
        try:
            target = await self.users.find_one(QueryFilter.equals(username=username))
            if target is None:
                return error_response("User not found.", HTTPStatus.NOT_FOUND, ErrorKind.NOT_FOUND)

            tier = resolve_tier(requester, target.id, stored_visibility(target))
            if tier is PrivacyTier.PRIVATE:
                viewer = requester.id if requester else "anonymous"
                logger.info(f"Refused private profile {username} to {viewer}")
                return error_response(
                    "This profile is private.", HTTPStatus.FORBIDDEN, ErrorKind.FORBIDDEN
                )

            profile = await self.users.project_one(
                QueryFilter.equals(id=target.id), build_projection(tier)
            )
            if profile is None:
                return error_response("User not found.", HTTPStatus.NOT_FOUND, ErrorKind.NOT_FOUND)

            logger.debug(f"Profile {username} projected at tier {tier.value}")
            return success_response(profile, "User profile fetched successfully.")
        except Exception:
            logger.exception(f"Failed to get profile {username}")
            return error_response(
                "Failed to get user profile.",
                HTTPStatus.INTERNAL_SERVER_ERROR,
                ErrorKind.INTERNAL,
            )
