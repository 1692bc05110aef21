"""
User - library members.

A user's profile is shown to other people through the privacy projection:
privacy_settings.profile_visibility decides how much of it non-owners see.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from ..core import CoreModel, ImageRef


class ProfileVisibility(str, Enum):
    """Stored visibility of a user's profile."""

    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class PrivacySettings(BaseModel):
    """Per-user privacy preferences."""

    profile_visibility: ProfileVisibility = Field(
        default=ProfileVisibility.PUBLIC,
        description="Who may view the profile",
    )


class SocialAccount(BaseModel):
    platform: str
    url: str


class Address(BaseModel):
    line: str | None = None
    city: str | None = None
    country: str | None = None
    postal_code: str | None = None


class User(CoreModel):
    """
    Library member.

    username is unique and is how profiles are addressed publicly.
    """

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    username: str = Field(
        ...,
        min_length=3,
        max_length=30,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Unique public handle",
    )
    bio: str | None = Field(default=None, max_length=500)
    image: ImageRef | None = None
    date_of_birth: date | None = None
    pronouns: str | None = Field(default=None, description="Pronoun set name")
    company: str | None = None
    url: str | None = None
    social_accounts: list[SocialAccount] = Field(default_factory=list)
    emails: list[str] = Field(default_factory=list)
    mobiles: list[str] = Field(default_factory=list)
    address: Address | None = None
    two_factor_enabled: bool = False
    privacy_settings: PrivacySettings = Field(default_factory=PrivacySettings)
    is_active: bool = True
