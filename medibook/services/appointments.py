"""
Appointment Service - books, cancels and lists appointments.

Keeps each doctor's slot ledger consistent with appointment state: a
time is booked on the ledger exactly while a non-cancelled appointment
holds it.
"""

from typing import List

from loguru import logger

from medibook.errors import MediBookError, SlotReleaseError, Unauthorized
from medibook.models.appointment import Appointment
from medibook.models.doctor import Doctor
from medibook.models.user import User
from medibook.services.slots import SlotLedger
from medibook.storage.base import APPOINTMENTS, DOCTORS, USERS, DocumentStore


class AppointmentService:
    """Appointment lifecycle on top of the document store and slot ledger."""

    def __init__(self, store: DocumentStore, ledger: SlotLedger):
        self._store = store
        self._ledger = ledger

    async def book(
        self, user_id: str, doc_id: str, slot_date: str, slot_time: str
    ) -> Appointment:
        """
        Book a slot with a doctor.

        Args:
            user_id: The authenticated patient
            doc_id: Doctor to book with
            slot_date: Date key of the slot
            slot_time: Time of the slot

        Returns:
            The stored appointment

        Raises:
            NotFound: The doctor or user does not exist
            DoctorUnavailable: The doctor is not taking appointments
            SlotUnavailable: The slot is already booked
        """
        doctor = Doctor.model_validate(await self._store.get(DOCTORS, doc_id))
        user = User.model_validate(await self._store.get(USERS, user_id))

        await self._ledger.reserve(doctor, slot_date, slot_time)

        appointment = Appointment(
            user_id=user.id,
            doc_id=doctor.id,
            slot_date=slot_date,
            slot_time=slot_time,
            user_data=user.snapshot(),
            doc_data=doctor.snapshot(),
            amount=doctor.fees,
        )

        try:
            await self._store.insert(APPOINTMENTS, appointment.model_dump())
        except MediBookError:
            logger.error(
                f"Failed to store appointment for doctor {doc_id} at "
                f"{slot_date} {slot_time}, releasing slot"
            )
            await self._ledger.release(doctor, slot_date, slot_time)
            raise

        logger.info(
            f"Appointment {appointment.id} booked: user={user_id} doctor={doc_id} "
            f"slot={slot_date} {slot_time} amount={appointment.amount}"
        )
        return appointment

    async def cancel(self, user_id: str, appointment_id: str) -> Appointment:
        """
        Cancel one of the caller's appointments and free its slot.

        The cancelled flag is flipped with a conditional update and only
        the call that flips it releases the slot, so overlapping or
        repeated cancels release it once. If the release fails the
        appointment stays cancelled, the slot stays booked and
        SlotReleaseError is raised.
        """
        appointment = Appointment.model_validate(
            await self._store.get(APPOINTMENTS, appointment_id)
        )

        if appointment.user_id != user_id:
            logger.warning(
                f"User {user_id} tried to cancel appointment {appointment_id} "
                f"owned by {appointment.user_id}"
            )
            raise Unauthorized()

        updated = await self._store.update_if(
            APPOINTMENTS, appointment_id, {"cancelled": False}, {"cancelled": True}
        )
        if updated is None:
            logger.debug(f"Appointment {appointment_id} was already cancelled")
            return Appointment.model_validate(
                await self._store.get(APPOINTMENTS, appointment_id)
            )
        appointment = Appointment.model_validate(updated)

        try:
            doctor = Doctor.model_validate(
                await self._store.get(DOCTORS, appointment.doc_id)
            )
            await self._ledger.release(doctor, appointment.slot_date, appointment.slot_time)
        except MediBookError as e:
            logger.error(f"Slot release failed for cancelled appointment {appointment_id}: {e}")
            raise SlotReleaseError(appointment_id, e) from e

        logger.info(f"Appointment {appointment_id} cancelled by user {user_id}")
        return appointment

    async def list(self, user_id: str) -> List[Appointment]:
        """All appointments of a user, cancelled ones included, in storage order."""
        documents = await self._store.find(APPOINTMENTS, {"user_id": user_id})
        return [Appointment.model_validate(doc) for doc in documents]
