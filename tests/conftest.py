"""
Shared fixtures for the booking backend tests.
"""

import hashlib
import hmac
from typing import Dict, List

import pytest

from medibook.config import Settings
from medibook.errors import ProviderError
from medibook.models import Doctor, Hospital, PaymentOrder, User
from medibook.services import (
    AppointmentService,
    DirectoryService,
    ImageStore,
    PaymentProvider,
    PaymentService,
    SlotLedger,
    TokenService,
    UserService,
)
from medibook.services.security import hash_password
from medibook.storage import DOCTORS, HOSPITALS, USERS, InMemoryDocumentStore

KEY_SECRET = "test_razorpay_secret"
JWT_SECRET = "test_jwt_secret"


def payment_signature(order_id: str, payment_id: str, secret: str = KEY_SECRET) -> str:
    """Signature Razorpay checkout returns for a successful payment."""
    return hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class FakePaymentProvider(PaymentProvider):
    """Payment gateway double that keeps orders in memory."""

    def __init__(self, key_secret: str = KEY_SECRET):
        self.orders: Dict[str, PaymentOrder] = {}
        self.fail = False
        self._key_secret = key_secret

    async def create_order(self, amount: int, currency: str, receipt: str) -> PaymentOrder:
        if self.fail:
            raise ProviderError("gateway down")
        order = PaymentOrder(
            id=f"order_{len(self.orders) + 1}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )
        self.orders[order.id] = order
        return order

    async def fetch_order(self, order_id: str) -> PaymentOrder:
        if order_id not in self.orders:
            raise ProviderError(f"Unknown order {order_id}")
        return self.orders[order_id]

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = payment_signature(order_id, payment_id, self._key_secret)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


class MemoryImageStore(ImageStore):
    """Image sink that keeps uploads in a list."""

    def __init__(self):
        self.saved: List[tuple] = []

    async def save(self, data: bytes, filename: str) -> str:
        self.saved.append((data, filename))
        return f"https://images.test/{len(self.saved)}/{filename}"


@pytest.fixture
def settings():
    return Settings(
        JWT_SECRET=JWT_SECRET,
        RAZORPAY_KEY_ID="rzp_test_key",
        RAZORPAY_KEY_SECRET=KEY_SECRET,
        STORAGE_BACKEND="memory",
    )


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def ledger(store):
    return SlotLedger(store)


@pytest.fixture
def provider():
    return FakePaymentProvider()


@pytest.fixture
def images():
    return MemoryImageStore()


@pytest.fixture
def tokens():
    return TokenService(JWT_SECRET)


@pytest.fixture
def appointment_service(store, ledger):
    return AppointmentService(store, ledger)


@pytest.fixture
def payment_service(store, provider):
    return PaymentService(store, provider, "INR")


@pytest.fixture
def user_service(store, tokens, images):
    return UserService(store, tokens, images)


@pytest.fixture
def directory_service(store):
    return DirectoryService(store)


@pytest.fixture
def sign():
    """Sign a checkout the way the gateway does."""
    return payment_signature


@pytest.fixture
def booked_times(store):
    """Read the times booked on a doctor's ledger for one date."""

    async def read(doctor_id: str, slot_date: str) -> List[str]:
        document = await store.get(DOCTORS, doctor_id)
        return document.get("slots_booked", {}).get(slot_date, [])

    return read


@pytest.fixture
async def doctor(store):
    """An available doctor charging 500 with an empty ledger."""
    doc = Doctor(name="Dr. Priya Sharma", fees=500, hospital="City Care Hospital")
    await store.insert(DOCTORS, doc.model_dump())
    return doc


@pytest.fixture
async def unavailable_doctor(store):
    doc = Doctor(name="Dr. Amit Patel", fees=800, available=False)
    await store.insert(DOCTORS, doc.model_dump())
    return doc


@pytest.fixture
async def hospital(store):
    hosp = Hospital(name="City Care Hospital")
    await store.insert(HOSPITALS, hosp.model_dump())
    return hosp


async def make_user(store, name: str, email: str, password: str = "password123") -> User:
    user = User(name=name, email=email, password=hash_password(password))
    await store.insert(USERS, user.model_dump())
    return user


@pytest.fixture
async def user(store):
    return await make_user(store, "Asha Rao", "asha@example.com")


@pytest.fixture
async def other_user(store):
    return await make_user(store, "Ravi Kumar", "ravi@example.com")
