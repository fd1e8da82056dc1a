"""
Document store interface.

The booking services only talk to storage through this interface:
key-by-id CRUD over plain dict documents plus the conditional updates
used by the slot ledger and cancellation. Implementations must make
``update_if``, ``add_to_set`` and ``pull_from_set`` atomic per document.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

USERS = "users"
DOCTORS = "doctors"
APPOINTMENTS = "appointments"
HOSPITALS = "hospitals"

COLLECTIONS = (USERS, DOCTORS, APPOINTMENTS, HOSPITALS)


class DocumentStore(ABC):
    """Abstract persistence gateway over the four booking collections."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        """Return the document with ``doc_id``; raise NotFound if absent."""

    @abstractmethod
    async def find(
        self, collection: str, filter: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Return documents whose top-level fields equal ``filter``, in storage order."""

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: Dict[str, Any],
        unique: Sequence[str] = (),
    ) -> Dict[str, Any]:
        """
        Insert a document carrying its own ``id``.

        Raises DuplicateDocument if the id is taken or another document
        already holds the same value in one of the ``unique`` fields.
        """

    @abstractmethod
    async def update(
        self, collection: str, doc_id: str, patch: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Set top-level fields and return the updated document; raise NotFound if absent."""

    @abstractmethod
    async def update_if(
        self,
        collection: str,
        doc_id: str,
        expected: Dict[str, Any],
        patch: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        Set top-level fields only if every ``expected`` field still matches.

        The check and the write are one step. Returns the updated document,
        or None if the document is missing or no longer matches.
        """

    @abstractmethod
    async def add_to_set(
        self,
        collection: str,
        doc_id: str,
        field: str,
        key: str,
        value: str,
        guard: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Append ``value`` to the list at ``document[field][key]`` in one step.

        The append only happens if the document exists, every ``guard``
        field equals its expected value and ``value`` is not already in
        the list. Returns True if the value was added.
        """

    @abstractmethod
    async def pull_from_set(
        self, collection: str, doc_id: str, field: str, key: str, value: str
    ) -> bool:
        """Remove ``value`` from ``document[field][key]``; True if something was removed."""

    async def close(self) -> None:
        """Release backend resources."""
        return None
