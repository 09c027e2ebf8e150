"""Server-side login session stores."""

from datetime import datetime, timedelta

import pytest

from museumtix.database import Base, create_db_engine, create_session_factory
from museumtix.storage.sessions import MemorySessionStore, MongoSessionStore, SqlSessionStore


@pytest.fixture(params=["memory", "sql", "mongo"])
def session_store(request, mongo_db):
    if request.param == "memory":
        return MemorySessionStore()
    if request.param == "sql":
        engine = create_db_engine("sqlite://")
        Base.metadata.create_all(bind=engine)
        return SqlSessionStore(create_session_factory(engine))
    return MongoSessionStore(mongo_db["sessions"])


class TestSessionStore:
    """Behaviour shared by every session store."""

    def test_create_and_get(self, session_store):
        sid = session_store.create(7, ttl_seconds=60)
        record = session_store.get(sid)
        assert record["sid"] == sid
        assert record["user_id"] == 7
        assert record["expires_at"] > datetime.utcnow()

    def test_session_ids_are_unique(self, session_store):
        assert session_store.create(1, 60) != session_store.create(1, 60)

    def test_destroy(self, session_store):
        """A destroyed session can no longer be read."""
        sid = session_store.create(7, ttl_seconds=60)
        assert session_store.destroy(sid) is True
        assert session_store.get(sid) is None
        assert session_store.destroy(sid) is False

    def test_expired_session_is_gone(self, session_store):
        sid = session_store.create(7, ttl_seconds=-1)
        assert session_store.get(sid) is None

    def test_prune_removes_only_expired(self, session_store):
        live = session_store.create(1, ttl_seconds=60)
        expired = [session_store.create(2, ttl_seconds=-1), session_store.create(3, ttl_seconds=-1)]
        removed = session_store.prune()
        if not isinstance(session_store, MongoSessionStore):
            # the TTL monitor may already have removed documents
            assert removed == 2
        assert session_store.get(live) is not None
        assert all(session_store.get(sid) is None for sid in expired)

    def test_unknown_sid(self, session_store):
        assert session_store.get("missing") is None


class TestMemorySessionStore:
    def test_periodic_prune_on_create(self):
        """Creating a session prunes once the prune interval has passed."""
        store = MemorySessionStore()
        expired = store.create(1, ttl_seconds=-1)
        store._last_prune = datetime.utcnow() - timedelta(days=2)
        store.create(2, ttl_seconds=60)
        assert expired not in store._sessions
