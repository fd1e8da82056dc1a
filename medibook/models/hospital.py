"""
Hospital data model.
"""

from uuid import uuid4

from pydantic import BaseModel, Field


class Hospital(BaseModel):
    """A hospital doctors are attached to by name."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(min_length=1)
    address: str = ""
    image: str = ""
