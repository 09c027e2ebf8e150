"""Server-side login session stores.

A login token carries only a session id; the session record lives here so a
logout (or expiry) revokes the token.
"""

import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, Optional

from pymongo.collection import Collection
from sqlalchemy.orm import sessionmaker

from museumtix.models import LoginSession

logger = logging.getLogger(__name__)

PRUNE_INTERVAL = timedelta(hours=24)


class SessionStore(ABC):
    """Interface for session persistence."""

    @abstractmethod
    def create(self, user_id: int, ttl_seconds: int) -> str:
        """Create a session for a user and return its id."""
        ...

    @abstractmethod
    def get(self, sid: str) -> Optional[dict]:
        """Return the live session record, or None if missing or expired."""
        ...

    @abstractmethod
    def destroy(self, sid: str) -> bool:
        ...

    @abstractmethod
    def prune(self) -> int:
        """Drop expired sessions and return how many were removed."""
        ...

    @staticmethod
    def _new_sid() -> str:
        return secrets.token_urlsafe(32)


class MemorySessionStore(SessionStore):
    """Process-local sessions, pruned at most once per PRUNE_INTERVAL"""

    def __init__(self):
        self._sessions: Dict[str, dict] = {}
        self._last_prune = datetime.utcnow()

    def create(self, user_id: int, ttl_seconds: int) -> str:
        self._maybe_prune()
        sid = self._new_sid()
        self._sessions[sid] = {
            "sid": sid,
            "user_id": user_id,
            "expires_at": datetime.utcnow() + timedelta(seconds=ttl_seconds),
        }
        return sid

    def get(self, sid: str) -> Optional[dict]:
        record = self._sessions.get(sid)
        if record is None:
            return None
        if record["expires_at"] <= datetime.utcnow():
            self._sessions.pop(sid, None)
            return None
        return record

    def destroy(self, sid: str) -> bool:
        return self._sessions.pop(sid, None) is not None

    def prune(self) -> int:
        now = datetime.utcnow()
        expired = [sid for sid, record in self._sessions.items() if record["expires_at"] <= now]
        for sid in expired:
            del self._sessions[sid]
        self._last_prune = now
        return len(expired)

    def _maybe_prune(self):
        if datetime.utcnow() - self._last_prune >= PRUNE_INTERVAL:
            removed = self.prune()
            if removed:
                logger.debug("Pruned %d expired sessions", removed)


class SqlSessionStore(SessionStore):
    """Sessions kept in the relational ``sessions`` table"""

    def __init__(self, session_factory: sessionmaker):
        self.SessionLocal = session_factory

    def create(self, user_id: int, ttl_seconds: int) -> str:
        sid = self._new_sid()
        with self.SessionLocal() as db:
            db.add(LoginSession(
                sid=sid,
                user_id=user_id,
                data={},
                expires_at=datetime.utcnow() + timedelta(seconds=ttl_seconds)
            ))
            db.commit()
        return sid

    def get(self, sid: str) -> Optional[dict]:
        with self.SessionLocal() as db:
            record = db.query(LoginSession).filter(LoginSession.sid == sid).first()
            if record is None:
                return None
            if record.expires_at <= datetime.utcnow():
                db.delete(record)
                db.commit()
                return None
            return {"sid": record.sid, "user_id": record.user_id, "expires_at": record.expires_at}

    def destroy(self, sid: str) -> bool:
        with self.SessionLocal() as db:
            deleted = db.query(LoginSession).filter(LoginSession.sid == sid).delete()
            db.commit()
            return deleted > 0

    def prune(self) -> int:
        with self.SessionLocal() as db:
            deleted = db.query(LoginSession).filter(
                LoginSession.expires_at <= datetime.utcnow()
            ).delete()
            db.commit()
            return deleted


class MongoSessionStore(SessionStore):
    """Sessions kept in a document collection with a TTL index"""

    def __init__(self, collection: Collection):
        self.collection = collection
        # Raises PyMongoError when the server is unreachable; callers fall back
        self.collection.create_index("expiresAt", expireAfterSeconds=0)

    def create(self, user_id: int, ttl_seconds: int) -> str:
        sid = self._new_sid()
        self.collection.insert_one({
            "_id": sid,
            "userId": user_id,
            "expiresAt": datetime.utcnow() + timedelta(seconds=ttl_seconds),
        })
        return sid

    def get(self, sid: str) -> Optional[dict]:
        doc = self.collection.find_one({"_id": sid})
        if doc is None:
            return None
        # The TTL monitor only runs once a minute
        if doc["expiresAt"] <= datetime.utcnow():
            self.collection.delete_one({"_id": sid})
            return None
        return {"sid": doc["_id"], "user_id": doc["userId"], "expires_at": doc["expiresAt"]}

    def destroy(self, sid: str) -> bool:
        return self.collection.delete_one({"_id": sid}).deleted_count > 0

    def prune(self) -> int:
        result = self.collection.delete_many({"expiresAt": {"$lte": datetime.utcnow()}})
        return result.deleted_count
