"""
Service wiring and FastAPI dependencies.

All services are built once at startup from settings and stored on
``app.state.services``; route handlers reach them through ``get_services``.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from loguru import logger

from medibook.config import Settings
from medibook.services import (
    AppointmentService,
    DirectoryService,
    ImageStore,
    LocalImageStore,
    PaymentProvider,
    PaymentService,
    RazorpayProvider,
    SlotLedger,
    TokenService,
    UserService,
)
from medibook.storage import DocumentStore, InMemoryDocumentStore, seed_sample_directory


@dataclass
class Services:
    """Everything a request handler needs, constructed once per process."""

    store: DocumentStore
    users: UserService
    directory: DirectoryService
    appointments: AppointmentService
    payments: PaymentService


async def create_store(settings: Settings) -> DocumentStore:
    """Open the storage backend selected by ``STORAGE_BACKEND``."""
    backend = settings.storage_backend.lower()
    if backend == "mongo":
        from medibook.storage.mongo import MongoDocumentStore

        store = MongoDocumentStore.connect(settings.mongodb_uri, settings.mongodb_database)
        await store.initialize()
        logger.info(f"Using MongoDB database {settings.mongodb_database}")
        return store
    if backend == "memory":
        store = InMemoryDocumentStore()
        await seed_sample_directory(store)
        logger.info("Using in-memory document store")
        return store
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def build_services(
    settings: Settings,
    store: DocumentStore,
    provider: Optional[PaymentProvider] = None,
    images: Optional[ImageStore] = None,
) -> Services:
    """Assemble the service graph around an opened store."""
    if provider is None:
        provider = RazorpayProvider(settings.razorpay_key_id, settings.razorpay_key_secret)
    if images is None:
        images = LocalImageStore(settings.media_dir, settings.media_base_url)

    tokens = TokenService(settings.jwt_secret, settings.jwt_algorithm)
    ledger = SlotLedger(store)

    return Services(
        store=store,
        users=UserService(store, tokens, images, settings.min_password_length),
        directory=DirectoryService(store),
        appointments=AppointmentService(store, ledger),
        payments=PaymentService(store, provider, settings.currency),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_user(
    token: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> str:
    """
    Resolve the ``token`` header to the authenticated user id.

    Raises:
        Unauthorized: The header is missing or the token is invalid
    """
    return services.users.authenticate(token)
