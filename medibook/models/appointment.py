"""
Appointment data models.
"""

from uuid import uuid4

from pydantic import BaseModel, Field

from medibook.models.doctor import DoctorSnapshot, now_ms
from medibook.models.user import UserSnapshot


class Appointment(BaseModel):
    """
    A booked appointment.

    The user and doctor are embedded as snapshots taken at booking time,
    so later profile edits never rewrite appointment history. After
    creation only ``cancelled``, ``payment`` and ``is_completed`` change.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    doc_id: str
    slot_date: str
    slot_time: str
    user_data: UserSnapshot
    doc_data: DoctorSnapshot
    amount: float = Field(ge=0)
    date: int = Field(default_factory=now_ms, description="Creation time, epoch ms")
    cancelled: bool = False
    payment: bool = False
    is_completed: bool = False


class BookingRequest(BaseModel):
    """Request body for booking a slot with a doctor."""

    doc_id: str = Field(alias="docId", min_length=1)
    slot_date: str = Field(alias="slotDate", min_length=1)
    slot_time: str = Field(alias="slotTime", min_length=1)

    model_config = {"populate_by_name": True}


class CancelRequest(BaseModel):
    """Request body for cancelling an appointment."""

    appointment_id: str = Field(alias="appointmentId", min_length=1)

    model_config = {"populate_by_name": True}
