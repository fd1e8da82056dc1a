"""
Services layer for the MediBook booking backend.
"""

from .appointments import AppointmentService
from .directory import DirectoryService
from .images import ImageStore, LocalImageStore
from .payments import PaymentProvider, PaymentService, RazorpayProvider
from .security import TokenService
from .slots import SlotLedger
from .users import UserService

__all__ = [
    "AppointmentService",
    "DirectoryService",
    "ImageStore",
    "LocalImageStore",
    "PaymentProvider",
    "PaymentService",
    "RazorpayProvider",
    "SlotLedger",
    "TokenService",
    "UserService",
]
