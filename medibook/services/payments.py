"""
Payment Service - Razorpay order creation and payment verification.

Orders are created with the appointment id as the receipt. When the
checkout returns, the gateway checks the signature and the appointment
is found again through the order's receipt.
"""

import asyncio
from abc import ABC, abstractmethod

import razorpay
from loguru import logger

from medibook.errors import (
    AlreadyCancelled,
    InvalidSignature,
    NotFound,
    ProviderError,
    Unauthorized,
)
from medibook.models.appointment import Appointment
from medibook.models.payment import PaymentOrder
from medibook.storage.base import APPOINTMENTS, DocumentStore


class PaymentProvider(ABC):
    """Payment gateway used to issue and look up orders."""

    @abstractmethod
    async def create_order(self, amount: int, currency: str, receipt: str) -> PaymentOrder:
        """Create an order for ``amount`` minor units."""

    @abstractmethod
    async def fetch_order(self, order_id: str) -> PaymentOrder:
        """Look up an order previously created by this gateway."""

    @abstractmethod
    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the signature the checkout returned for a payment."""


class RazorpayProvider(PaymentProvider):
    """
    Razorpay gateway client.

    The SDK is synchronous, so network calls run in a worker thread to
    keep the event loop free.
    """

    def __init__(self, key_id: str, key_secret: str):
        self._client = razorpay.Client(auth=(key_id, key_secret))

    async def create_order(self, amount: int, currency: str, receipt: str) -> PaymentOrder:
        try:
            order = await asyncio.to_thread(
                self._client.order.create,
                data={"amount": amount, "currency": currency, "receipt": receipt},
            )
        except Exception as e:
            logger.error(f"Razorpay order creation failed for receipt {receipt}: {e}")
            raise ProviderError(str(e)) from e
        return PaymentOrder.model_validate(order)

    async def fetch_order(self, order_id: str) -> PaymentOrder:
        try:
            order = await asyncio.to_thread(self._client.order.fetch, order_id)
        except Exception as e:
            logger.error(f"Razorpay order lookup failed for {order_id}: {e}")
            raise ProviderError(str(e)) from e
        return PaymentOrder.model_validate(order)

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        try:
            self._client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError:
            return False
        return True


class PaymentService:
    """Creates provider orders for appointments and records verified payments."""

    def __init__(self, store: DocumentStore, provider: PaymentProvider, currency: str = "INR"):
        self._store = store
        self._provider = provider
        self._currency = currency

    async def _owned_appointment(self, user_id: str, appointment_id: str) -> Appointment:
        appointment = Appointment.model_validate(
            await self._store.get(APPOINTMENTS, appointment_id)
        )
        if appointment.user_id != user_id:
            logger.warning(
                f"User {user_id} tried to pay for appointment {appointment_id} "
                f"owned by {appointment.user_id}"
            )
            raise Unauthorized()
        return appointment

    async def create_order(self, user_id: str, appointment_id: str) -> PaymentOrder:
        """
        Create a provider order for one of the caller's appointments.

        Raises:
            NotFound: The appointment does not exist
            Unauthorized: The appointment belongs to another user
            AlreadyCancelled: The appointment is cancelled
            ProviderError: The gateway rejected the request
        """
        appointment = await self._owned_appointment(user_id, appointment_id)
        if appointment.cancelled:
            logger.warning(f"Payment requested for cancelled appointment {appointment_id}")
            raise AlreadyCancelled()

        amount = int(round(appointment.amount * 100))
        order = await self._provider.create_order(amount, self._currency, appointment.id)

        logger.info(
            f"Created order {order.id} for appointment {appointment_id}: "
            f"{amount} {self._currency}"
        )
        return order

    async def verify(
        self, user_id: str, order_id: str, payment_id: str, signature: str
    ) -> Appointment:
        """
        Check a checkout signature and mark the order's appointment as paid.

        Nothing is written unless the signature matches and the appointment
        belongs to the caller. Verifying an already paid appointment
        succeeds without another write.

        Raises:
            InvalidSignature: The signature does not match
            NotFound: The order carries no known appointment
            Unauthorized: The appointment belongs to another user
            AlreadyCancelled: The appointment was cancelled before payment
        """
        if not self._provider.verify_signature(order_id, payment_id, signature):
            logger.warning(f"Invalid payment signature for order {order_id}")
            raise InvalidSignature()

        order = await self._provider.fetch_order(order_id)
        if not order.receipt:
            raise NotFound(f"No appointment recorded for order {order_id}")

        appointment = await self._owned_appointment(user_id, order.receipt)
        if appointment.cancelled:
            logger.warning(
                f"Payment {payment_id} verified for cancelled appointment {appointment.id}"
            )
            raise AlreadyCancelled()
        if appointment.payment:
            return appointment

        appointment = Appointment.model_validate(
            await self._store.update(APPOINTMENTS, appointment.id, {"payment": True})
        )
        logger.info(f"Payment {payment_id} recorded for appointment {appointment.id}")
        return appointment
