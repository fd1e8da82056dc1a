"""
Persistence layer for the MediBook booking backend.
"""

from .base import APPOINTMENTS, DOCTORS, HOSPITALS, USERS, DocumentStore
from .memory import InMemoryDocumentStore, seed_sample_directory

__all__ = [
    "APPOINTMENTS",
    "DOCTORS",
    "HOSPITALS",
    "USERS",
    "DocumentStore",
    "InMemoryDocumentStore",
    "seed_sample_directory",
]
