"""
In-memory document store.

Default backend for development and tests. Documents are deep-copied on
the way in and out so callers never share mutable state with the store.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from medibook.errors import DuplicateDocument, NotFound
from medibook.models import Doctor, Hospital
from medibook.storage.base import COLLECTIONS, DOCTORS, HOSPITALS, DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """
    In-memory store with lock-protected conditional updates.

    Dicts keep insertion order, which gives ``find`` a stable storage order.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {
            name: {} for name in COLLECTIONS
        }
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        if name not in self._collections:
            raise KeyError(f"Unknown collection: {name}")
        return self._collections[name]

    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        document = self._collection(collection).get(doc_id)
        if document is None:
            raise NotFound(f"{collection[:-1].capitalize()} not found")
        return copy.deepcopy(document)

    async def find(
        self, collection: str, filter: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        filter = filter or {}
        return [
            copy.deepcopy(doc)
            for doc in self._collection(collection).values()
            if all(doc.get(k) == v for k, v in filter.items())
        ]

    async def insert(
        self,
        collection: str,
        document: Dict[str, Any],
        unique: Sequence[str] = (),
    ) -> Dict[str, Any]:
        async with self._lock:
            docs = self._collection(collection)
            if document["id"] in docs:
                raise DuplicateDocument(f"Duplicate id {document['id']} in {collection}")
            for field in unique:
                if any(doc.get(field) == document.get(field) for doc in docs.values()):
                    raise DuplicateDocument(f"Duplicate {field} in {collection}")
            docs[document["id"]] = copy.deepcopy(document)
        return copy.deepcopy(document)

    async def update(
        self, collection: str, doc_id: str, patch: Dict[str, Any]
    ) -> Dict[str, Any]:
        async with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                raise NotFound(f"{collection[:-1].capitalize()} not found")
            document.update(copy.deepcopy(patch))
            return copy.deepcopy(document)

    async def update_if(
        self,
        collection: str,
        doc_id: str,
        expected: Dict[str, Any],
        patch: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        async with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                return None
            if any(document.get(k) != v for k, v in expected.items()):
                return None
            document.update(copy.deepcopy(patch))
            return copy.deepcopy(document)

    async def add_to_set(
        self,
        collection: str,
        doc_id: str,
        field: str,
        key: str,
        value: str,
        guard: Optional[Dict[str, Any]] = None,
    ) -> bool:
        async with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                return False
            if any(document.get(k) != v for k, v in (guard or {}).items()):
                return False
            values = document.setdefault(field, {}).setdefault(key, [])
            if value in values:
                return False
            values.append(value)
            return True

    async def pull_from_set(
        self, collection: str, doc_id: str, field: str, key: str, value: str
    ) -> bool:
        async with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                return False
            values = document.get(field, {}).get(key)
            if not values or value not in values:
                return False
            document[field][key] = [v for v in values if v != value]
            return True


async def seed_sample_directory(store: DocumentStore) -> None:
    """Insert a small hospital and doctor directory into an empty store."""
    if await store.find(HOSPITALS):
        return

    hospitals = [
        Hospital(name="City Care Hospital", address="12 MG Road, Bengaluru"),
        Hospital(name="Green Valley Clinic", address="4 Park Street, Kolkata"),
    ]
    doctors = [
        ("Dr. Priya Sharma", "General physician", "MBBS", "4 Years", 500, 0),
        ("Dr. Amit Patel", "Gynecologist", "MD", "7 Years", 800, 0),
        ("Dr. Neha Iyer", "Dermatologist", "MD", "3 Years", 600, 1),
        ("Dr. Karan Singh", "Pediatricians", "DNB", "10 Years", 700, 1),
    ]

    for hospital in hospitals:
        await store.insert(HOSPITALS, hospital.model_dump())
    for name, speciality, degree, experience, fees, hospital_idx in doctors:
        doctor = Doctor(
            name=name,
            speciality=speciality,
            degree=degree,
            experience=experience,
            fees=fees,
            hospital=hospitals[hospital_idx].name,
        )
        await store.insert(DOCTORS, doctor.model_dump())

    logger.info(f"Seeded {len(hospitals)} hospitals and {len(doctors)} doctors")
