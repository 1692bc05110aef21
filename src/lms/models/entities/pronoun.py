"""
Pronoun - selectable pronoun sets ("she/her", "they/them", ...).

Referenced by name from user profiles.
"""

from pydantic import Field

from ..core import CoreModel


class Pronoun(CoreModel):
    """Pronoun set managed by administrators."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique pronoun set label",
    )
