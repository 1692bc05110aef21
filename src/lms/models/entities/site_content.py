"""
SiteContent - static site pages maintained by administrators.

One document per kind; the kind is unique.
"""

from enum import Enum

from pydantic import Field

from ..core import CoreModel


class SiteContentKind(str, Enum):
    ABOUT_US = "about_us"
    PRIVACY_POLICY = "privacy_policy"
    TERMS_AND_CONDITIONS = "terms_and_conditions"


class SiteContent(CoreModel):
    """Static page body."""

    kind: SiteContentKind = Field(..., description="Which page this document holds")
    title: str | None = Field(default=None, max_length=200)
    content: str = Field(..., min_length=1, description="Page body (markdown or HTML)")
