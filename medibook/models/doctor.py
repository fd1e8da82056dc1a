"""
Doctor data models.
"""

from datetime import datetime
from typing import Dict, List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from medibook.models.user import Address


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.now().timestamp() * 1000)


class Doctor(BaseModel):
    """
    A doctor record, including the slot ledger of booked times.

    ``slots_booked`` maps a slot date (e.g. ``"10_1_2024"`` or
    ``"2024-01-10"``, the format is chosen by the client) to the list of
    booked slot times for that date. A time appears at most once per date.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    email: str = ""
    password: str = ""
    image: str = ""
    speciality: str = ""
    degree: str = ""
    experience: str = ""
    about: str = ""
    available: bool = True
    fees: float = Field(ge=0)
    address: Address = Field(default_factory=Address)
    hospital: str = ""
    date: int = Field(default_factory=now_ms)
    slots_booked: Dict[str, List[str]] = Field(default_factory=dict)

    def public(self) -> dict:
        """Doctor data safe to return to clients."""
        return self.model_dump(exclude={"password"})

    def snapshot(self) -> "DoctorSnapshot":
        return DoctorSnapshot.model_validate(
            self.model_dump(exclude={"password", "slots_booked"})
        )


class DoctorSnapshot(BaseModel):
    """Copy of a doctor's profile embedded in an appointment at booking time."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str = ""
    image: str = ""
    speciality: str = ""
    degree: str = ""
    experience: str = ""
    about: str = ""
    available: bool = True
    fees: float
    address: Address = Field(default_factory=Address)
    hospital: str = ""
    date: int = 0
