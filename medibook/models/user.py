"""
User data models.
"""

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Address(BaseModel):
    """Postal address kept on user and doctor profiles."""

    line1: str = ""
    line2: str = ""


class User(BaseModel):
    """
    A registered patient account as stored in the users collection.

    The password field only ever holds a bcrypt hash.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(description="bcrypt hash of the account password")
    image: str = ""
    phone: str = "0000000000"
    address: Address = Field(default_factory=Address)
    gender: str = "Not Selected"
    dob: str = "Not Selected"

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        """Strip surrounding whitespace from the display name."""
        if isinstance(v, str):
            return v.strip()
        return v

    def public(self) -> dict:
        """Profile data safe to return to clients."""
        return self.model_dump(exclude={"password"})

    def snapshot(self) -> "UserSnapshot":
        return UserSnapshot.model_validate(self.public())


class UserSnapshot(BaseModel):
    """Copy of a user's profile embedded in an appointment at booking time."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    image: str = ""
    phone: str = ""
    address: Address = Field(default_factory=Address)
    gender: str = ""
    dob: str = ""
