"""
Data models for the MediBook booking backend.
"""

from .appointment import Appointment, BookingRequest, CancelRequest
from .doctor import Doctor, DoctorSnapshot
from .hospital import Hospital
from .payment import OrderRequest, PaymentOrder, PaymentVerification
from .user import Address, User, UserSnapshot

__all__ = [
    "Address",
    "Appointment",
    "BookingRequest",
    "CancelRequest",
    "Doctor",
    "DoctorSnapshot",
    "Hospital",
    "OrderRequest",
    "PaymentOrder",
    "PaymentVerification",
    "User",
    "UserSnapshot",
]
