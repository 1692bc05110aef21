"""
LMS Entity Models

Catalogue resources built on the generic resource service:
- Pronouns, Subjects, Faqs, Publications
- Translators and Writers (with portraits)
- SiteContent (about us, privacy policy, terms and conditions)
- Admins and Users
- ActivityLog (audit trail, read-only over HTTP)

All entities inherit from CoreModel.
"""

from .activity_log import ActionType, ActivityLog
from .admin import Admin
from .faq import Faq
from .people import Translator, Writer
from .pronoun import Pronoun
from .publication import Publication
from .site_content import SiteContent, SiteContentKind
from .subject import Subject
from .user import Address, PrivacySettings, ProfileVisibility, SocialAccount, User

__all__ = [
    "ActionType",
    "ActivityLog",
    "Address",
    "Admin",
    "Faq",
    "PrivacySettings",
    "ProfileVisibility",
    "Pronoun",
    "Publication",
    "SiteContent",
    "SiteContentKind",
    "SocialAccount",
    "Subject",
    "Translator",
    "User",
    "Writer",
]
