"""
Slot Ledger - per-doctor record of booked appointment times.

The ledger lives on the doctor document as ``slots_booked``. Every change
is a single conditional update in the document store, so two concurrent
reservations of the same slot cannot both succeed.
"""

from loguru import logger

from medibook.errors import DoctorUnavailable, SlotUnavailable
from medibook.models.doctor import Doctor
from medibook.storage.base import DOCTORS, DocumentStore

LEDGER_FIELD = "slots_booked"


class SlotLedger:
    """Reserve and release (date, time) slots on a doctor's ledger."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def reserve(self, doctor: Doctor, slot_date: str, slot_time: str) -> None:
        """
        Book ``slot_time`` on ``slot_date`` for the doctor.

        Raises:
            DoctorUnavailable: The doctor is not taking appointments.
            SlotUnavailable: The time is already booked on that date.
            NotFound: The doctor record no longer exists.
        """
        if not doctor.available:
            raise DoctorUnavailable()

        added = await self._store.add_to_set(
            DOCTORS,
            doctor.id,
            LEDGER_FIELD,
            slot_date,
            slot_time,
            guard={"available": True},
        )
        if added:
            logger.info(f"Reserved slot {slot_date} {slot_time} for doctor {doctor.id}")
            return

        # The conditional update was refused; re-read to report why
        current = Doctor.model_validate(await self._store.get(DOCTORS, doctor.id))
        if not current.available:
            raise DoctorUnavailable()
        logger.warning(f"Slot {slot_date} {slot_time} already booked for doctor {doctor.id}")
        raise SlotUnavailable()

    async def release(self, doctor: Doctor, slot_date: str, slot_time: str) -> bool:
        """
        Free ``slot_time`` on ``slot_date``.

        Releasing a slot that is not booked is a no-op. Returns True when
        a booked time was actually removed.
        """
        removed = await self._store.pull_from_set(
            DOCTORS, doctor.id, LEDGER_FIELD, slot_date, slot_time
        )
        if removed:
            logger.info(f"Released slot {slot_date} {slot_time} for doctor {doctor.id}")
        else:
            logger.debug(f"Slot {slot_date} {slot_time} was not booked for doctor {doctor.id}")
        return removed
