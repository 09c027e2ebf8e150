"""Document backend and the integer-identifier adapter."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from museumtix.config import Settings
from museumtix.errors import (
    ConversationNotFoundError, DuplicateUserError, ExhibitionNotFoundError, TicketTypeNotFoundError,
)
from museumtix.schemas import ExhibitionCreate, MessageCreate, TicketCreate, UserCreate
from museumtix.storage import create_storage
from museumtix.storage.adapter import IdAliasRegistry, StorageAdapter
from museumtix.storage.memory import MemStorage
from museumtix.storage.mongo import EXHIBITIONS, TICKETS, USERS, MongoStorage, to_object_id
from museumtix.storage.sessions import MemorySessionStore, MongoSessionStore


class TestIdAliasRegistry:
    """ObjectId <-> integer mapping."""

    def test_aliases_are_sequential_per_collection(self, mongo_db):
        registry = IdAliasRegistry(mongo_db)
        first, second = ObjectId(), ObjectId()
        assert registry.to_alias("widgets", first) == 1
        assert registry.to_alias("widgets", second) == 2
        assert registry.to_alias("gadgets", ObjectId()) == 1

    def test_alias_is_stable(self, mongo_db):
        """The same native id always maps to the same alias."""
        registry = IdAliasRegistry(mongo_db)
        native = ObjectId()
        alias = registry.to_alias("widgets", native)
        assert registry.to_alias("widgets", native) == alias
        assert IdAliasRegistry(mongo_db).to_alias("widgets", native) == alias
        assert registry.to_native("widgets", alias) == str(native)

    def test_unknown_alias_resolves_to_none(self, mongo_db):
        registry = IdAliasRegistry(mongo_db)
        assert registry.to_native("widgets", 42) is None
        assert registry.to_native("widgets", None) is None

    def test_aliases_not_reused_after_delete(self, adapter_storage):
        """Deleting a document does not free its alias."""
        exhibition = adapter_storage.create_exhibition(ExhibitionCreate(
            title="Short Run",
            description="Gone soon",
            start_date=datetime(2024, 1, 1),
            end_date=datetime(2024, 1, 2)
        ))
        adapter_storage.delete_exhibition(exhibition.id)
        replacement = adapter_storage.create_exhibition(ExhibitionCreate(
            title="Next Run",
            description="Here now",
            start_date=datetime(2024, 2, 1),
            end_date=datetime(2024, 2, 2)
        ))
        assert replacement.id == exhibition.id + 1
        assert adapter_storage.get_exhibition(exhibition.id) is None


class TestMongoStorage:
    """Native-identifier document operations."""

    def test_invalid_object_id_matches_nothing(self, mongo_storage):
        assert to_object_id("not-an-object-id") is None
        assert mongo_storage.get_user("not-an-object-id") is None
        assert mongo_storage.delete_ticket("123") is False

    def test_seeding_is_guarded_by_user_count(self, mongo_db):
        storage = MongoStorage(mongo_db)
        assert storage.initialize_database() is True
        assert storage.initialize_database() is False
        assert mongo_db[USERS].count_documents({}) == 1

    def test_documents_use_camel_case_fields(self, mongo_storage, mongo_db):
        doc = mongo_storage.create_user(UserCreate(
            username="frank",
            password="hashed",
            email="frank@museum.org",
            full_name="Frank"
        ))
        stored = mongo_db[USERS].find_one({"_id": doc["_id"]})
        assert stored["fullName"] == "Frank"
        assert stored["languagePreference"] == "en"
        assert stored["isAdmin"] is False

    @pytest.mark.parametrize("field", ["username", "email"])
    def test_index_collision_names_the_field(self, mongo_storage, monkeypatch, field):
        """A duplicate that slips past the lookups is reported by the field that collided."""
        mongo_storage.create_user(UserCreate(username="dora", password="hashed", email="dora@museum.org"))
        monkeypatch.setattr(mongo_storage, "get_user_by_username", lambda username: None)
        monkeypatch.setattr(mongo_storage, "get_user_by_email", lambda email: None)

        values = {"username": "dora2", "email": "dora2@museum.org"}
        values[field] = {"username": "dora", "email": "dora@museum.org"}[field]
        with pytest.raises(DuplicateUserError) as exc_info:
            mongo_storage.create_user(UserCreate(password="hashed", **values))
        assert exc_info.value.field == field

    def test_ticket_references_populated_in_place(self, mongo_storage, mongo_db):
        """Existing references are replaced by documents; missing ones stay ids."""
        user = mongo_storage.get_user_by_username("admin")
        ticket_type = mongo_db["tickettypes"].find_one({"name": "General Admission"})
        exhibition = mongo_db[EXHIBITIONS].find_one({})

        ticket = mongo_storage.create_ticket(
            str(user["_id"]), str(ticket_type["_id"]), str(exhibition["_id"]),
            2, datetime.utcnow() + timedelta(days=1)
        )
        assert ticket["ticketTypeId"]["name"] == "General Admission"
        assert ticket["exhibitionId"]["title"] == exhibition["title"]
        assert ticket["totalPrice"] == 36.0

        mongo_storage.delete_exhibition(str(exhibition["_id"]))
        reloaded = mongo_storage.get_ticket(str(ticket["_id"]))
        assert reloaded["exhibitionId"] == exhibition["_id"]

    def test_session_store_falls_back_to_memory(self):
        """An unreachable session collection degrades to process-local sessions."""
        db = MagicMock()
        db.__getitem__.return_value.create_index.side_effect = ServerSelectionTimeoutError("down")
        storage = MongoStorage(db)
        assert isinstance(storage.session_store, MemorySessionStore)

    def test_session_store_uses_collection(self, mongo_storage):
        assert isinstance(mongo_storage.session_store, MongoSessionStore)


class TestStorageAdapter:
    """Translation between aliases and native ids."""

    def test_seeded_aliases_follow_insertion_order(self, adapter_storage):
        assert adapter_storage.get_user(1).username == "admin"
        titles = [adapter_storage.get_exhibition(i).title for i in (1, 2, 3)]
        assert titles[0].startswith("Ancient Egypt")
        assert adapter_storage.get_ticket_type(2).name == "Premium Pass"

    def test_ticket_round_trip(self, adapter_storage, mongo_db):
        """Ticket ids and references come back as the aliases that went in."""
        ticket = adapter_storage.create_ticket(TicketCreate(
            user_id=1,
            ticket_type_id=2,
            exhibition_id=3,
            quantity=1,
            visit_date=datetime.utcnow() + timedelta(days=2)
        ))
        assert ticket.user_id == 1
        assert ticket.ticket_type_id == 2
        assert ticket.exhibition_id == 3
        assert ticket.total_price == 32.0
        assert ticket.ticket_type.id == 2
        assert ticket.exhibition.id == 3

        native = adapter_storage.registry.to_native(TICKETS, ticket.id)
        assert mongo_db[TICKETS].find_one({"_id": ObjectId(native)}) is not None
        assert adapter_storage.get_tickets_by_user_id(1)[0].id == ticket.id

    def test_unknown_references_raise(self, adapter_storage):
        visit = datetime.utcnow() + timedelta(days=1)
        with pytest.raises(TicketTypeNotFoundError):
            adapter_storage.create_ticket(TicketCreate(
                user_id=1, ticket_type_id=99, quantity=1, visit_date=visit
            ))
        with pytest.raises(ExhibitionNotFoundError):
            adapter_storage.create_ticket(TicketCreate(
                user_id=1, ticket_type_id=1, exhibition_id=99, quantity=1, visit_date=visit
            ))
        with pytest.raises(ConversationNotFoundError):
            adapter_storage.create_message(MessageCreate(
                conversation_id=99, is_from_user=True, content="hello"
            ))

    def test_unknown_aliases_are_not_found(self, adapter_storage):
        assert adapter_storage.get_ticket(99) is None
        assert adapter_storage.get_tickets_by_user_id(99) == []
        assert adapter_storage.delete_exhibition(99) is False
        assert adapter_storage.get_messages_by_conversation_id(99) == []


class TestCreateStorage:
    """Backend selection at startup."""

    def test_memory_backend(self):
        storage = create_storage(Settings(STORAGE_BACKEND="memory"))
        assert isinstance(storage, MemStorage)
        assert storage.get_user_by_username("admin") is not None

    def test_unreachable_mongo_falls_back_to_memory(self):
        storage = create_storage(Settings(
            STORAGE_BACKEND="mongo",
            MONGODB_URI="mongodb://127.0.0.1:1",
            MONGODB_TIMEOUT_MS=100
        ))
        assert isinstance(storage, MemStorage)

    def test_sql_backend(self):
        storage = create_storage(Settings(STORAGE_BACKEND="sql", DATABASE_URL="sqlite://"))
        try:
            assert len(storage.get_all_ticket_types()) == 3
        finally:
            storage.close()

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            create_storage(Settings(STORAGE_BACKEND="cassandra"))

    def test_adapter_wraps_mongo(self, mongo_db):
        adapter = StorageAdapter(MongoStorage(mongo_db))
        adapter.initialize_database()
        assert adapter.session_store is adapter.backend.session_store
