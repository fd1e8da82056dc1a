"""
Directory Service - read-only listings of hospitals and their doctors.
"""

from typing import Any, Dict, List

from loguru import logger

from medibook.models.doctor import Doctor
from medibook.models.hospital import Hospital
from medibook.storage.base import DOCTORS, HOSPITALS, DocumentStore


class DirectoryService:
    def __init__(self, store: DocumentStore):
        self._store = store

    async def list_hospitals(self) -> List[Hospital]:
        documents = await self._store.find(HOSPITALS)
        return [Hospital.model_validate(doc) for doc in documents]

    async def list_doctors(self, hospital_name: str) -> List[Dict[str, Any]]:
        """Public profiles of the doctors working at ``hospital_name``."""
        documents = await self._store.find(DOCTORS, {"hospital": hospital_name})
        logger.debug(f"Found {len(documents)} doctors for hospital {hospital_name}")
        return [Doctor.model_validate(doc).public() for doc in documents]
