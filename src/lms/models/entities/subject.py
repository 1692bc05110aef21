"""Subject - book subject / genre taxonomy."""

from pydantic import Field

from ..core import CoreModel


class Subject(CoreModel):
    """Book subject."""

    name: str = Field(..., min_length=1, max_length=100, description="Unique subject name")
