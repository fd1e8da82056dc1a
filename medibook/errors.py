"""
Typed failures raised by the booking services.

Every error carries the HTTP status the API layer answers with and the
message placed in the response envelope.
"""

from typing import Optional


class MediBookError(Exception):
    """Base class for all booking backend errors."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(MediBookError):
    status_code = 404
    default_message = "Not found"


class DoctorUnavailable(MediBookError):
    default_message = "Doctor Not Available"


class SlotUnavailable(MediBookError):
    default_message = "Slot Not Available"


class Unauthorized(MediBookError):
    status_code = 401
    default_message = "Unauthorized action"


class AlreadyCancelled(MediBookError):
    default_message = "Appointment Cancelled or not found"


class InvalidSignature(MediBookError):
    default_message = "Invalid payment signature"


class InvalidCredentials(MediBookError):
    default_message = "Invalid credentials"


class ValidationError(MediBookError):
    default_message = "Missing Details"


class StorageError(MediBookError):
    status_code = 500
    default_message = "Storage failure"


class DuplicateDocument(StorageError):
    """An insert collided with an existing id or unique field."""

    status_code = 409
    default_message = "Document already exists"


class SlotReleaseError(StorageError):
    """The appointment was cancelled but its slot is still reserved."""

    def __init__(self, appointment_id: str, cause: Exception):
        self.appointment_id = appointment_id
        self.cause = cause
        super().__init__(
            f"Appointment {appointment_id} cancelled but slot release failed: {cause}"
        )


class ProviderError(MediBookError):
    status_code = 502
    default_message = "Payment provider failure"
