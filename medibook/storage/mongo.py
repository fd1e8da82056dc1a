"""
MongoDB document store.

Uses the native asyncio client shipped with pymongo. Conditional updates
are single calls whose filter carries the expected state, so concurrent
bookings of the same slot, or cancels of the same appointment, cannot
both succeed.
"""

from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from medibook.errors import DuplicateDocument, NotFound, StorageError
from medibook.storage.base import USERS, DocumentStore


def _to_mongo(document: Dict[str, Any]) -> Dict[str, Any]:
    document = dict(document)
    if "id" in document:
        document["_id"] = document.pop("id")
    return document


def _from_mongo(document: Dict[str, Any]) -> Dict[str, Any]:
    document = dict(document)
    document["id"] = document.pop("_id")
    return document


def _nested_path(field: str, key: str) -> str:
    if "." in key or key.startswith("$"):
        raise StorageError(f"Invalid key for nested update: {key!r}")
    return f"{field}.{key}"


class MongoDocumentStore(DocumentStore):
    """
    Document store backed by a MongoDB database.

    Uniqueness on insert is enforced by the indexes created in
    ``initialize``, so the ``unique`` argument of ``insert`` only names
    fields that must already carry a unique index.
    """

    def __init__(self, database: AsyncDatabase, client: Optional[AsyncMongoClient] = None):
        self._db = database
        self._client = client

    @classmethod
    def connect(cls, uri: str, database: str) -> "MongoDocumentStore":
        client: AsyncMongoClient = AsyncMongoClient(uri)
        return cls(client[database], client)

    async def initialize(self) -> None:
        """Create the indexes the services rely on."""
        try:
            await self._db[USERS].create_index("email", unique=True)
        except PyMongoError as e:
            logger.error(f"Failed to create indexes: {e}")
            raise StorageError(str(e)) from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        try:
            document = await self._db[collection].find_one({"_id": doc_id})
        except PyMongoError as e:
            logger.error(f"Mongo get failed on {collection}: {e}")
            raise StorageError(str(e)) from e
        if document is None:
            raise NotFound(f"{collection[:-1].capitalize()} not found")
        return _from_mongo(document)

    async def find(
        self, collection: str, filter: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self._db[collection].find(_to_mongo(filter or {}))
            documents = await cursor.to_list(None)
        except PyMongoError as e:
            logger.error(f"Mongo find failed on {collection}: {e}")
            raise StorageError(str(e)) from e
        return [_from_mongo(doc) for doc in documents]

    async def insert(
        self,
        collection: str,
        document: Dict[str, Any],
        unique: Sequence[str] = (),
    ) -> Dict[str, Any]:
        try:
            await self._db[collection].insert_one(_to_mongo(document))
        except DuplicateKeyError as e:
            raise DuplicateDocument(f"Duplicate key in {collection}") from e
        except PyMongoError as e:
            logger.error(f"Mongo insert failed on {collection}: {e}")
            raise StorageError(str(e)) from e
        return dict(document)

    async def update(
        self, collection: str, doc_id: str, patch: Dict[str, Any]
    ) -> Dict[str, Any]:
        try:
            document = await self._db[collection].find_one_and_update(
                {"_id": doc_id},
                {"$set": patch},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Mongo update failed on {collection}: {e}")
            raise StorageError(str(e)) from e
        if document is None:
            raise NotFound(f"{collection[:-1].capitalize()} not found")
        return _from_mongo(document)

    async def update_if(
        self,
        collection: str,
        doc_id: str,
        expected: Dict[str, Any],
        patch: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        try:
            document = await self._db[collection].find_one_and_update(
                {"_id": doc_id, **expected},
                {"$set": patch},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Mongo conditional update failed on {collection}: {e}")
            raise StorageError(str(e)) from e
        if document is None:
            return None
        return _from_mongo(document)

    async def add_to_set(
        self,
        collection: str,
        doc_id: str,
        field: str,
        key: str,
        value: str,
        guard: Optional[Dict[str, Any]] = None,
    ) -> bool:
        path = _nested_path(field, key)
        query = {"_id": doc_id, **(guard or {}), path: {"$ne": value}}
        try:
            result = await self._db[collection].update_one(query, {"$push": {path: value}})
        except PyMongoError as e:
            logger.error(f"Mongo add_to_set failed on {collection}: {e}")
            raise StorageError(str(e)) from e
        return result.modified_count == 1

    async def pull_from_set(
        self, collection: str, doc_id: str, field: str, key: str, value: str
    ) -> bool:
        path = _nested_path(field, key)
        try:
            result = await self._db[collection].update_one(
                {"_id": doc_id}, {"$pull": {path: value}}
            )
        except PyMongoError as e:
            logger.error(f"Mongo pull_from_set failed on {collection}: {e}")
            raise StorageError(str(e)) from e
        return result.modified_count == 1
