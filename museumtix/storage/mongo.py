"""Document storage on MongoDB.

Identifiers here are native ObjectId strings. Reads return raw documents;
ticket reads populate ``ticketTypeId`` and ``exhibitionId`` in place with the
referenced documents when they still exist. ``StorageAdapter`` translates
this into the integer-identifier storage interface.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from museumtix.errors import DuplicateUserError, TicketTypeNotFoundError
from museumtix.qr import generate_qr_code_data
from museumtix.schemas import AnalyticsCreate, ExhibitionCreate, TestimonialCreate, TicketTypeCreate, UserCreate
from museumtix.storage.seed import seed_exhibitions, seed_testimonials, seed_ticket_types, seed_users
from museumtix.storage.sessions import MemorySessionStore, MongoSessionStore, SessionStore

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

USERS = "users"
EXHIBITIONS = "exhibitions"
TICKET_TYPES = "tickettypes"
TICKETS = "tickets"
CONVERSATIONS = "conversations"
MESSAGES = "messages"
ANALYTICS = "analytics"
TESTIMONIALS = "testimonials"
SESSIONS = "sessions"


def connect_to_database(uri: str, database: str, timeout_ms: int = 5000) -> MongoClient:
    """Open a client and verify the server answers within the timeout.

    Raises:
        PyMongoError: If no server could be selected.
    """
    client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
    try:
        client.admin.command("ping")
    except PyMongoError:
        client.close()
        raise
    logger.info("Connected to MongoDB database %s", database)
    return client


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a native identifier; malformed ids match nothing"""
    if isinstance(value, ObjectId):
        return value
    if value is None or not ObjectId.is_valid(str(value)):
        return None
    return ObjectId(str(value))


def to_camel_document(data: Dict[str, Any]) -> Document:
    """Pydantic field names to document field names"""
    document = {}
    for key, value in data.items():
        head, *rest = key.split("_")
        document[head + "".join(part.capitalize() for part in rest)] = value
    return document


class MongoStorage:
    """CRUD over the document collections using native string identifiers"""
    
    def __init__(self, db: Database, session_store: Optional[SessionStore] = None, client: Optional[MongoClient] = None):
        self.db = db
        self.client = client
        self.session_store = session_store or self._create_session_store()
    
    def _create_session_store(self) -> SessionStore:
        try:
            return MongoSessionStore(self.db[SESSIONS])
        except PyMongoError as e:
            logger.warning("Session store error: %s; falling back to memory store for sessions", e)
            return MemorySessionStore()
    
    def ensure_indexes(self) -> None:
        self.db[USERS].create_index("username", unique=True)
        self.db[USERS].create_index("email", unique=True)
        self.db[TICKETS].create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
        self.db[MESSAGES].create_index([("conversationId", ASCENDING), ("createdAt", ASCENDING)])
    
    def initialize_database(self) -> bool:
        """Seed fixture data if the users collection is empty; True if seeded"""
        self.ensure_indexes()
        user_count = self.db[USERS].count_documents({})
        if user_count > 0:
            logger.info("Database already contains data, skipping initialization")
            return False
        
        logger.info("No users found, initializing database with sample data...")
        for user in seed_users():
            self.create_user(user)
        for exhibition in seed_exhibitions():
            self.create_exhibition(exhibition)
        for ticket_type in seed_ticket_types():
            self.create_ticket_type(ticket_type)
        for testimonial in seed_testimonials():
            doc = self.create_testimonial(testimonial)
            self.approve_testimonial(str(doc["_id"]))
        logger.info("Sample data created successfully")
        return True
    
    def close(self) -> None:
        if self.client is not None:
            self.client.close()
    
    # Helpers
    def _insert(self, collection: str, data: Dict[str, Any]) -> Document:
        document = to_camel_document(data)
        document["createdAt"] = datetime.utcnow()
        result = self.db[collection].insert_one(document)
        document["_id"] = result.inserted_id
        return document
    
    def _find_by_id(self, collection: str, native_id: str) -> Optional[Document]:
        object_id = to_object_id(native_id)
        if object_id is None:
            return None
        return self.db[collection].find_one({"_id": object_id})
    
    def _update_by_id(self, collection: str, native_id: str, changes: Dict[str, Any]) -> Optional[Document]:
        object_id = to_object_id(native_id)
        if object_id is None:
            return None
        return self.db[collection].find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
    
    def _delete_by_id(self, collection: str, native_id: str) -> bool:
        object_id = to_object_id(native_id)
        if object_id is None:
            return False
        return self.db[collection].delete_one({"_id": object_id}).deleted_count > 0
    
    # User operations
    def get_user(self, native_id: str) -> Optional[Document]:
        return self._find_by_id(USERS, native_id)
    
    def get_user_by_username(self, username: str) -> Optional[Document]:
        return self.db[USERS].find_one({"username": username})
    
    def get_user_by_email(self, email: str) -> Optional[Document]:
        return self.db[USERS].find_one({"email": email})
    
    def create_user(self, user: UserCreate) -> Document:
        # Checked up front as well as by the unique indexes, which may be missing
        if self.get_user_by_username(user.username):
            raise DuplicateUserError("username")
        if self.get_user_by_email(user.email):
            raise DuplicateUserError("email")
        try:
            return self._insert(USERS, user.dict())
        except DuplicateKeyError as e:
            key_pattern = (e.details or {}).get("keyPattern") or {}
            if "email" in key_pattern:
                raise DuplicateUserError("email")
            if "username" in key_pattern:
                raise DuplicateUserError("username")
            # Servers that omit keyPattern: look up which field collided
            exists = self.db[USERS].find_one({"username": user.username})
            raise DuplicateUserError("username" if exists else "email")
    
    def get_all_users(self) -> List[Document]:
        return list(self.db[USERS].find().sort("_id", ASCENDING))
    
    # Exhibition operations
    def get_exhibition(self, native_id: str) -> Optional[Document]:
        return self._find_by_id(EXHIBITIONS, native_id)
    
    def get_all_exhibitions(self) -> List[Document]:
        return list(self.db[EXHIBITIONS].find().sort([("startDate", ASCENDING), ("_id", ASCENDING)]))
    
    def get_featured_exhibitions(self) -> List[Document]:
        return list(self.db[EXHIBITIONS].find({"isFeatured": True}).sort([("startDate", ASCENDING), ("_id", ASCENDING)]))
    
    def create_exhibition(self, exhibition: ExhibitionCreate) -> Document:
        return self._insert(EXHIBITIONS, exhibition.dict())
    
    def update_exhibition(self, native_id: str, exhibition: ExhibitionCreate) -> Optional[Document]:
        changes = to_camel_document(exhibition.dict())
        if not changes["imageUrl"]:
            changes.pop("imageUrl")
        return self._update_by_id(EXHIBITIONS, native_id, changes)
    
    def delete_exhibition(self, native_id: str) -> bool:
        return self._delete_by_id(EXHIBITIONS, native_id)
    
    # Ticket type operations
    def get_ticket_type(self, native_id: str) -> Optional[Document]:
        return self._find_by_id(TICKET_TYPES, native_id)
    
    def get_all_ticket_types(self) -> List[Document]:
        return list(self.db[TICKET_TYPES].find().sort("_id", ASCENDING))
    
    def create_ticket_type(self, ticket_type: TicketTypeCreate) -> Document:
        return self._insert(TICKET_TYPES, ticket_type.dict())
    
    def update_ticket_type(self, native_id: str, ticket_type: TicketTypeCreate) -> Optional[Document]:
        changes = to_camel_document(ticket_type.dict())
        if not changes["color"]:
            changes.pop("color")
        return self._update_by_id(TICKET_TYPES, native_id, changes)
    
    def delete_ticket_type(self, native_id: str) -> bool:
        return self._delete_by_id(TICKET_TYPES, native_id)
    
    # Ticket operations
    def _populate(self, ticket: Document) -> Document:
        """Replace references with the referenced documents where they exist"""
        ticket_type = self.db[TICKET_TYPES].find_one({"_id": ticket["ticketTypeId"]})
        if ticket_type:
            ticket["ticketTypeId"] = ticket_type
        if ticket.get("exhibitionId") is not None:
            exhibition = self.db[EXHIBITIONS].find_one({"_id": ticket["exhibitionId"]})
            if exhibition:
                ticket["exhibitionId"] = exhibition
        return ticket
    
    def get_ticket(self, native_id: str) -> Optional[Document]:
        ticket = self._find_by_id(TICKETS, native_id)
        return self._populate(ticket) if ticket else None
    
    def get_all_tickets(self) -> List[Document]:
        tickets = self.db[TICKETS].find().sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        return [self._populate(t) for t in tickets]
    
    def get_tickets_by_user_id(self, user_native_id: str) -> List[Document]:
        user_id = to_object_id(user_native_id)
        if user_id is None:
            return []
        tickets = self.db[TICKETS].find({"userId": user_id}).sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        return [self._populate(t) for t in tickets]
    
    def create_ticket(
        self,
        user_id: str,
        ticket_type_id: str,
        exhibition_id: Optional[str],
        quantity: int,
        visit_date: datetime
    ) -> Document:
        ticket_type = self.get_ticket_type(ticket_type_id)
        if not ticket_type:
            raise TicketTypeNotFoundError(ticket_type_id)
        
        document = {
            "userId": to_object_id(user_id),
            "ticketTypeId": ticket_type["_id"],
            "exhibitionId": to_object_id(exhibition_id),
            "quantity": quantity,
            "visitDate": visit_date,
            "totalPrice": ticket_type["price"] * quantity,
            "isPaid": False,
            "paymentIntentId": None,
            "qrCodeData": None,
            "isUsed": False,
            "createdAt": datetime.utcnow(),
        }
        result = self.db[TICKETS].insert_one(document)
        return self.get_ticket(str(result.inserted_id))
    
    def mark_ticket_paid(self, native_id: str, payment_intent_id: str) -> Optional[Document]:
        # Two separate writes: a failure in between leaves a paid ticket
        # without a QR payload, which is regenerated on the next read
        updated = self._update_by_id(TICKETS, native_id, {
            "isPaid": True,
            "paymentIntentId": payment_intent_id,
        })
        if not updated:
            return None
        self.generate_qr_code(native_id)
        return self.get_ticket(native_id)
    
    def generate_qr_code(self, native_id: str) -> Optional[Document]:
        ticket = self._find_by_id(TICKETS, native_id)
        if not ticket:
            return None
        qr_code_data = generate_qr_code_data(
            ticket["_id"], ticket["userId"], ticket["ticketTypeId"],
            ticket["quantity"], ticket["visitDate"], ticket["isPaid"]
        )
        self._update_by_id(TICKETS, native_id, {"qrCodeData": qr_code_data})
        return self.get_ticket(native_id)
    
    def mark_ticket_used(self, native_id: str) -> Optional[Document]:
        updated = self._update_by_id(TICKETS, native_id, {"isUsed": True})
        return self._populate(updated) if updated else None
    
    def delete_ticket(self, native_id: str) -> bool:
        return self._delete_by_id(TICKETS, native_id)
    
    # Conversation operations
    def get_conversation(self, native_id: str) -> Optional[Document]:
        return self._find_by_id(CONVERSATIONS, native_id)
    
    def create_conversation(self, session_id: str, language: Optional[str], user_id: Optional[str]) -> Document:
        document = {
            "userId": to_object_id(user_id),
            "sessionId": session_id,
            "language": language or "en",
            "createdAt": datetime.utcnow(),
        }
        result = self.db[CONVERSATIONS].insert_one(document)
        document["_id"] = result.inserted_id
        return document
    
    # Message operations
    def create_message(self, conversation_id: str, is_from_user: bool, content: str) -> Document:
        document = {
            "conversationId": to_object_id(conversation_id),
            "isFromUser": is_from_user,
            "content": content,
            "createdAt": datetime.utcnow(),
        }
        result = self.db[MESSAGES].insert_one(document)
        document["_id"] = result.inserted_id
        return document
    
    def get_messages_by_conversation_id(self, conversation_native_id: str) -> List[Document]:
        conversation_id = to_object_id(conversation_native_id)
        if conversation_id is None:
            return []
        return list(self.db[MESSAGES].find({"conversationId": conversation_id}).sort(
            [("createdAt", ASCENDING), ("_id", ASCENDING)]
        ))
    
    # Analytics operations
    def get_analytics(self) -> List[Document]:
        return list(self.db[ANALYTICS].find().sort([("date", ASCENDING), ("_id", ASCENDING)]))
    
    def create_analytics_entry(self, entry: AnalyticsCreate, popular_exhibition_id: Optional[str]) -> Document:
        now = datetime.utcnow()
        document = {
            "date": entry.date or now,
            "visitorCount": entry.visitor_count,
            "revenue": entry.revenue,
            "popularExhibitionId": to_object_id(popular_exhibition_id),
            "averageVisitDuration": entry.average_visit_duration,
            "createdAt": now,
        }
        result = self.db[ANALYTICS].insert_one(document)
        document["_id"] = result.inserted_id
        return document
    
    # Testimonial operations
    def get_approved_testimonials(self) -> List[Document]:
        return list(self.db[TESTIMONIALS].find({"isApproved": True}).sort([("createdAt", DESCENDING), ("_id", DESCENDING)]))
    
    def create_testimonial(self, testimonial: TestimonialCreate) -> Document:
        data = testimonial.dict()
        data["is_approved"] = False
        return self._insert(TESTIMONIALS, data)
    
    def approve_testimonial(self, native_id: str) -> Optional[Document]:
        return self._update_by_id(TESTIMONIALS, native_id, {"isApproved": True})
