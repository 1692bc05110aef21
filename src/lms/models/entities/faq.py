"""Faq - frequently asked questions shown on the public site."""

from pydantic import Field

from ..core import CoreModel


class Faq(CoreModel):
    """Question and answer pair."""

    question: str = Field(..., min_length=5, max_length=500)
    answer: str = Field(..., min_length=1, max_length=5000)
