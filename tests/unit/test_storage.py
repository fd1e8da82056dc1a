"""
Unit tests for the document stores.
"""

import pytest
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.results import UpdateResult

from medibook.errors import DuplicateDocument, NotFound, StorageError
from medibook.storage import APPOINTMENTS, DOCTORS, USERS, InMemoryDocumentStore
from medibook.storage.mongo import MongoDocumentStore, _from_mongo, _nested_path, _to_mongo


@pytest.fixture
async def memory_store():
    store = InMemoryDocumentStore()
    await store.insert(DOCTORS, {"id": "d1", "name": "Dr. A", "available": True, "slots_booked": {}})
    return store


class TestInMemoryStore:
    """Test the in-memory document store."""

    @pytest.mark.asyncio
    async def test_get_missing(self, memory_store):
        with pytest.raises(NotFound) as exc_info:
            await memory_store.get(DOCTORS, "missing")
        assert exc_info.value.message == "Doctor not found"

    @pytest.mark.asyncio
    async def test_documents_are_copies(self, memory_store):
        """Mutating a returned document does not touch the store."""
        doc = await memory_store.get(DOCTORS, "d1")
        doc["slots_booked"]["2024-01-10"] = ["10:00"]
        assert (await memory_store.get(DOCTORS, "d1"))["slots_booked"] == {}

    @pytest.mark.asyncio
    async def test_duplicate_insert(self, memory_store):
        with pytest.raises(DuplicateDocument):
            await memory_store.insert(DOCTORS, {"id": "d1"})

    @pytest.mark.asyncio
    async def test_find_filters_in_insert_order(self):
        store = InMemoryDocumentStore()
        for i, owner in enumerate(["u1", "u2", "u1", "u1"]):
            await store.insert(USERS, {"id": f"x{i}", "owner": owner})

        found = await store.find(USERS, {"owner": "u1"})
        assert [d["id"] for d in found] == ["x0", "x2", "x3"]
        assert len(await store.find(USERS)) == 4

    @pytest.mark.asyncio
    async def test_update(self, memory_store):
        updated = await memory_store.update(DOCTORS, "d1", {"available": False})
        assert updated["available"] is False
        with pytest.raises(NotFound):
            await memory_store.update(DOCTORS, "missing", {"available": False})

    @pytest.mark.asyncio
    async def test_unique_insert(self):
        store = InMemoryDocumentStore()
        await store.insert(USERS, {"id": "u1", "email": "a@example.com"}, unique=("email",))

        with pytest.raises(DuplicateDocument):
            await store.insert(USERS, {"id": "u2", "email": "a@example.com"}, unique=("email",))
        await store.insert(USERS, {"id": "u3", "email": "b@example.com"}, unique=("email",))
        assert [d["id"] for d in await store.find(USERS)] == ["u1", "u3"]

    @pytest.mark.asyncio
    async def test_update_if(self, memory_store):
        """The patch only lands while the expected fields still match."""
        updated = await memory_store.update_if(
            DOCTORS, "d1", {"available": True}, {"available": False}
        )
        assert updated["available"] is False
        assert await memory_store.update_if(
            DOCTORS, "d1", {"available": True}, {"name": "Dr. B"}
        ) is None
        assert (await memory_store.get(DOCTORS, "d1"))["name"] == "Dr. A"
        assert await memory_store.update_if(DOCTORS, "missing", {}, {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_add_to_set_guard(self, memory_store):
        assert await memory_store.add_to_set(
            DOCTORS, "d1", "slots_booked", "k", "v", guard={"available": False}
        ) is False
        assert await memory_store.add_to_set(
            DOCTORS, "d1", "slots_booked", "k", "v", guard={"available": True}
        ) is True
        assert await memory_store.add_to_set(DOCTORS, "d1", "slots_booked", "k", "v") is False
        assert await memory_store.add_to_set(DOCTORS, "missing", "slots_booked", "k", "v") is False

    @pytest.mark.asyncio
    async def test_pull_from_set(self, memory_store):
        await memory_store.add_to_set(DOCTORS, "d1", "slots_booked", "k", "v")
        assert await memory_store.pull_from_set(DOCTORS, "d1", "slots_booked", "k", "v") is True
        assert await memory_store.pull_from_set(DOCTORS, "d1", "slots_booked", "k", "v") is False
        assert (await memory_store.get(DOCTORS, "d1"))["slots_booked"] == {"k": []}


class TestMongoHelpers:
    """Test id mapping and path building for the MongoDB store."""

    def test_id_mapping(self):
        assert _to_mongo({"id": "a", "x": 1}) == {"_id": "a", "x": 1}
        assert _to_mongo({"user_id": "u"}) == {"user_id": "u"}
        assert _from_mongo({"_id": "a", "x": 1}) == {"id": "a", "x": 1}

    def test_nested_path(self):
        assert _nested_path("slots_booked", "10_1_2024") == "slots_booked.10_1_2024"

    @pytest.mark.parametrize("key", ["2024.01.10", "$where"])
    def test_nested_path_rejects_operators(self, key):
        with pytest.raises(StorageError):
            _nested_path("slots_booked", key)


class RecordingCollection:
    """Collection double that records the queries it receives."""

    def __init__(self, document=None, modified=1, error=None):
        self.document = document
        self.modified = modified
        self.error = error
        self.calls = []

    def _record(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    async def find_one(self, filter):
        self._record("find_one", filter)
        return self.document

    async def insert_one(self, document):
        self._record("insert_one", document)

    async def find_one_and_update(self, filter, update, return_document=None):
        self._record("find_one_and_update", filter, update)
        return self.document

    async def update_one(self, filter, update):
        self._record("update_one", filter, update)
        return UpdateResult({"n": self.modified, "nModified": self.modified}, True)


def mongo_store(collection: RecordingCollection) -> MongoDocumentStore:
    return MongoDocumentStore({DOCTORS: collection, USERS: collection, APPOINTMENTS: collection})


class TestMongoStore:
    """Test the queries the MongoDB store sends."""

    @pytest.mark.asyncio
    async def test_add_to_set_is_one_guarded_update(self):
        collection = RecordingCollection()
        store = mongo_store(collection)

        added = await store.add_to_set(
            DOCTORS, "d1", "slots_booked", "10_1_2024", "10:00 AM", guard={"available": True}
        )

        assert added is True
        assert collection.calls == [(
            "update_one",
            {
                "_id": "d1",
                "available": True,
                "slots_booked.10_1_2024": {"$ne": "10:00 AM"},
            },
            {"$push": {"slots_booked.10_1_2024": "10:00 AM"}},
        )]

    @pytest.mark.asyncio
    async def test_add_to_set_refused(self):
        """No matching document means the slot was taken or the doctor is off."""
        store = mongo_store(RecordingCollection(modified=0))
        assert await store.add_to_set(DOCTORS, "d1", "slots_booked", "k", "v") is False

    @pytest.mark.asyncio
    async def test_pull_from_set(self):
        collection = RecordingCollection()
        store = mongo_store(collection)

        assert await store.pull_from_set(DOCTORS, "d1", "slots_booked", "10_1_2024", "10:00 AM") is True
        assert collection.calls == [(
            "update_one",
            {"_id": "d1"},
            {"$pull": {"slots_booked.10_1_2024": "10:00 AM"}},
        )]

        collection.modified = 0
        assert await store.pull_from_set(DOCTORS, "d1", "slots_booked", "10_1_2024", "10:00 AM") is False

    @pytest.mark.asyncio
    async def test_bad_key_never_reaches_the_database(self):
        collection = RecordingCollection()
        store = mongo_store(collection)
        with pytest.raises(StorageError):
            await store.add_to_set(DOCTORS, "d1", "slots_booked", "$where", "v")
        assert collection.calls == []

    @pytest.mark.asyncio
    async def test_update_if_filters_on_expected_state(self):
        collection = RecordingCollection(document={"_id": "a1", "cancelled": True})
        store = mongo_store(collection)

        updated = await store.update_if(
            APPOINTMENTS, "a1", {"cancelled": False}, {"cancelled": True}
        )

        assert updated == {"id": "a1", "cancelled": True}
        assert collection.calls == [(
            "find_one_and_update",
            {"_id": "a1", "cancelled": False},
            {"$set": {"cancelled": True}},
        )]

    @pytest.mark.asyncio
    async def test_update_if_no_match(self):
        store = mongo_store(RecordingCollection(document=None))
        assert await store.update_if(APPOINTMENTS, "a1", {"cancelled": False}, {"cancelled": True}) is None

    @pytest.mark.asyncio
    async def test_get_maps_id(self):
        collection = RecordingCollection(document={"_id": "d1", "name": "Dr. A"})
        store = mongo_store(collection)

        assert await store.get(DOCTORS, "d1") == {"id": "d1", "name": "Dr. A"}
        assert collection.calls == [("find_one", {"_id": "d1"})]

    @pytest.mark.asyncio
    async def test_get_missing(self):
        store = mongo_store(RecordingCollection(document=None))
        with pytest.raises(NotFound) as exc_info:
            await store.get(DOCTORS, "d1")
        assert exc_info.value.message == "Doctor not found"

    @pytest.mark.asyncio
    async def test_insert_sends_mongo_id(self):
        collection = RecordingCollection()
        store = mongo_store(collection)

        await store.insert(USERS, {"id": "u1", "email": "a@example.com"}, unique=("email",))
        assert collection.calls == [("insert_one", {"_id": "u1", "email": "a@example.com"})]

    @pytest.mark.asyncio
    async def test_duplicate_key(self):
        store = mongo_store(RecordingCollection(error=DuplicateKeyError("dup", 11000)))
        with pytest.raises(DuplicateDocument):
            await store.insert(USERS, {"id": "u1", "email": "a@example.com"})

    @pytest.mark.asyncio
    async def test_driver_errors_become_storage_errors(self):
        store = mongo_store(RecordingCollection(error=PyMongoError("connection reset")))
        with pytest.raises(StorageError):
            await store.pull_from_set(DOCTORS, "d1", "slots_booked", "k", "v")
