"""Integer-identifier view over the document backend.

Document ids are ObjectIds; the rest of the service speaks small integers.
``IdAliasRegistry`` keeps an explicit per-collection mapping between the two
so that every native id gets a stable, collision-free alias the first time
it is read. Aliases are never reused, even after the document is deleted.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from museumtix.errors import ConversationNotFoundError, ExhibitionNotFoundError, TicketTypeNotFoundError
from museumtix.schemas import (
    AnalyticsCreate, AnalyticsEntry, Conversation, ConversationCreate, Exhibition,
    ExhibitionCreate, Message, MessageCreate, Testimonial, TestimonialCreate, Ticket,
    TicketCreate, TicketType, TicketTypeCreate, User, UserCreate, is_storable_id,
)
from museumtix.storage import mongo
from museumtix.storage.interfaces import IStorage
from museumtix.storage.mongo import Document, MongoStorage

logger = logging.getLogger(__name__)

ALIASES = "id_aliases"
COUNTERS = "counters"


class IdAliasRegistry:
    """Bidirectional ObjectId <-> integer mapping, one number space per collection"""
    
    def __init__(self, db: Database):
        self.aliases = db[ALIASES]
        self.counters = db[COUNTERS]
        self.aliases.create_index([("collection", ASCENDING), ("alias", ASCENDING)], unique=True)
        self.aliases.create_index([("collection", ASCENDING), ("native", ASCENDING)], unique=True)
    
    def _next_alias(self, collection: str) -> int:
        counter = self.counters.find_one_and_update(
            {"_id": collection},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return counter["seq"]
    
    def to_alias(self, collection: str, native_id: ObjectId) -> int:
        """Return the alias of a native id, assigning the next one on first sight"""
        existing = self.aliases.find_one({"collection": collection, "native": native_id})
        if existing:
            return existing["alias"]
        
        alias = self._next_alias(collection)
        try:
            self.aliases.insert_one({"collection": collection, "native": native_id, "alias": alias})
        except DuplicateKeyError:
            # Another writer mapped the same id first; its alias wins
            existing = self.aliases.find_one({"collection": collection, "native": native_id})
            return existing["alias"]
        return alias
    
    def to_native(self, collection: str, alias: Optional[int]) -> Optional[str]:
        """Return the native id string for an alias, or None if it was never issued"""
        if not is_storable_id(alias):
            return None
        existing = self.aliases.find_one({"collection": collection, "alias": int(alias)})
        if not existing:
            return None
        return str(existing["native"])


class StorageAdapter(IStorage):
    """Exposes MongoStorage through the integer-identifier storage interface"""
    
    def __init__(self, backend: MongoStorage, registry: Optional[IdAliasRegistry] = None):
        self.backend = backend
        self.registry = registry or IdAliasRegistry(backend.db)
        self.session_store = backend.session_store
    
    def initialize_database(self) -> None:
        self.backend.initialize_database()
        # Walk collections in insertion order so fixture aliases start at 1
        for collection in (mongo.USERS, mongo.EXHIBITIONS, mongo.TICKET_TYPES, mongo.TESTIMONIALS):
            for doc in self.backend.db[collection].find({}, {"_id": 1}).sort("_id", ASCENDING):
                self.registry.to_alias(collection, doc["_id"])
    
    def close(self) -> None:
        self.backend.close()
    
    # Conversion helpers
    def _alias(self, collection: str, value: Any) -> Optional[int]:
        """Alias of a reference that may be an ObjectId or a populated document"""
        if value is None:
            return None
        if isinstance(value, dict):
            value = value["_id"]
        return self.registry.to_alias(collection, value)
    
    def _with_alias(self, collection: str, doc: Document) -> Dict[str, Any]:
        data = {k: v for k, v in doc.items() if k != "_id"}
        data["id"] = self.registry.to_alias(collection, doc["_id"])
        return data
    
    def _user(self, doc: Document) -> User:
        return User.model_validate(self._with_alias(mongo.USERS, doc))
    
    def _exhibition(self, doc: Document) -> Exhibition:
        return Exhibition.model_validate(self._with_alias(mongo.EXHIBITIONS, doc))
    
    def _ticket_type(self, doc: Document) -> TicketType:
        return TicketType.model_validate(self._with_alias(mongo.TICKET_TYPES, doc))
    
    def _ticket(self, doc: Document) -> Ticket:
        data = self._with_alias(mongo.TICKETS, doc)
        ticket_type = doc["ticketTypeId"]
        exhibition = doc.get("exhibitionId")
        data["userId"] = self._alias(mongo.USERS, doc["userId"])
        data["ticketTypeId"] = self._alias(mongo.TICKET_TYPES, ticket_type)
        data["exhibitionId"] = self._alias(mongo.EXHIBITIONS, exhibition)
        # Populated only when the referenced document still exists
        data["ticketType"] = self._ticket_type(ticket_type) if isinstance(ticket_type, dict) else None
        data["exhibition"] = self._exhibition(exhibition) if isinstance(exhibition, dict) else None
        return Ticket.model_validate(data)
    
    def _conversation(self, doc: Document) -> Conversation:
        data = self._with_alias(mongo.CONVERSATIONS, doc)
        data["userId"] = self._alias(mongo.USERS, doc.get("userId"))
        return Conversation.model_validate(data)
    
    def _message(self, doc: Document) -> Message:
        data = self._with_alias(mongo.MESSAGES, doc)
        data["conversationId"] = self._alias(mongo.CONVERSATIONS, doc["conversationId"])
        return Message.model_validate(data)
    
    def _analytics_entry(self, doc: Document) -> AnalyticsEntry:
        data = self._with_alias(mongo.ANALYTICS, doc)
        data["popularExhibitionId"] = self._alias(mongo.EXHIBITIONS, doc.get("popularExhibitionId"))
        return AnalyticsEntry.model_validate(data)
    
    def _testimonial(self, doc: Document) -> Testimonial:
        return Testimonial.model_validate(self._with_alias(mongo.TESTIMONIALS, doc))
    
    # User operations
    def get_user(self, user_id: int) -> Optional[User]:
        native_id = self.registry.to_native(mongo.USERS, user_id)
        if native_id is None:
            return None
        doc = self.backend.get_user(native_id)
        return self._user(doc) if doc else None
    
    def get_user_by_username(self, username: str) -> Optional[User]:
        doc = self.backend.get_user_by_username(username)
        return self._user(doc) if doc else None
    
    def get_user_by_email(self, email: str) -> Optional[User]:
        doc = self.backend.get_user_by_email(email)
        return self._user(doc) if doc else None
    
    def create_user(self, user: UserCreate) -> User:
        return self._user(self.backend.create_user(user))
    
    def get_all_users(self) -> List[User]:
        return [self._user(doc) for doc in self.backend.get_all_users()]
    
    # Exhibition operations
    def get_exhibition(self, exhibition_id: int) -> Optional[Exhibition]:
        native_id = self.registry.to_native(mongo.EXHIBITIONS, exhibition_id)
        if native_id is None:
            return None
        doc = self.backend.get_exhibition(native_id)
        return self._exhibition(doc) if doc else None
    
    def get_all_exhibitions(self) -> List[Exhibition]:
        return [self._exhibition(doc) for doc in self.backend.get_all_exhibitions()]
    
    def get_featured_exhibitions(self) -> List[Exhibition]:
        return [self._exhibition(doc) for doc in self.backend.get_featured_exhibitions()]
    
    def create_exhibition(self, exhibition: ExhibitionCreate) -> Exhibition:
        return self._exhibition(self.backend.create_exhibition(exhibition))
    
    def update_exhibition(self, exhibition_id: int, exhibition: ExhibitionCreate) -> Optional[Exhibition]:
        native_id = self.registry.to_native(mongo.EXHIBITIONS, exhibition_id)
        if native_id is None:
            return None
        doc = self.backend.update_exhibition(native_id, exhibition)
        return self._exhibition(doc) if doc else None
    
    def delete_exhibition(self, exhibition_id: int) -> bool:
        native_id = self.registry.to_native(mongo.EXHIBITIONS, exhibition_id)
        if native_id is None:
            return False
        return self.backend.delete_exhibition(native_id)
    
    # Ticket type operations
    def get_ticket_type(self, ticket_type_id: int) -> Optional[TicketType]:
        native_id = self.registry.to_native(mongo.TICKET_TYPES, ticket_type_id)
        if native_id is None:
            return None
        doc = self.backend.get_ticket_type(native_id)
        return self._ticket_type(doc) if doc else None
    
    def get_all_ticket_types(self) -> List[TicketType]:
        return [self._ticket_type(doc) for doc in self.backend.get_all_ticket_types()]
    
    def create_ticket_type(self, ticket_type: TicketTypeCreate) -> TicketType:
        return self._ticket_type(self.backend.create_ticket_type(ticket_type))
    
    def update_ticket_type(self, ticket_type_id: int, ticket_type: TicketTypeCreate) -> Optional[TicketType]:
        native_id = self.registry.to_native(mongo.TICKET_TYPES, ticket_type_id)
        if native_id is None:
            return None
        doc = self.backend.update_ticket_type(native_id, ticket_type)
        return self._ticket_type(doc) if doc else None
    
    def delete_ticket_type(self, ticket_type_id: int) -> bool:
        native_id = self.registry.to_native(mongo.TICKET_TYPES, ticket_type_id)
        if native_id is None:
            return False
        return self.backend.delete_ticket_type(native_id)
    
    # Ticket operations
    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        native_id = self.registry.to_native(mongo.TICKETS, ticket_id)
        if native_id is None:
            return None
        doc = self.backend.get_ticket(native_id)
        return self._ticket(doc) if doc else None
    
    def get_all_tickets(self) -> List[Ticket]:
        return [self._ticket(doc) for doc in self.backend.get_all_tickets()]
    
    def get_tickets_by_user_id(self, user_id: int) -> List[Ticket]:
        native_id = self.registry.to_native(mongo.USERS, user_id)
        if native_id is None:
            return []
        return [self._ticket(doc) for doc in self.backend.get_tickets_by_user_id(native_id)]
    
    def create_ticket(self, ticket: TicketCreate) -> Ticket:
        ticket_type_id = self.registry.to_native(mongo.TICKET_TYPES, ticket.ticket_type_id)
        if ticket_type_id is None:
            raise TicketTypeNotFoundError(ticket.ticket_type_id)
        
        exhibition_id = None
        if ticket.exhibition_id is not None:
            exhibition_id = self.registry.to_native(mongo.EXHIBITIONS, ticket.exhibition_id)
            if exhibition_id is None:
                raise ExhibitionNotFoundError(ticket.exhibition_id)
        
        user_id = self.registry.to_native(mongo.USERS, ticket.user_id)
        if user_id is None:
            raise ValueError(f"User {ticket.user_id} not found")
        
        doc = self.backend.create_ticket(
            user_id, ticket_type_id, exhibition_id, ticket.quantity, ticket.visit_date
        )
        return self._ticket(doc)
    
    def mark_ticket_paid(self, ticket_id: int, payment_intent_id: str) -> Optional[Ticket]:
        native_id = self.registry.to_native(mongo.TICKETS, ticket_id)
        if native_id is None:
            return None
        doc = self.backend.mark_ticket_paid(native_id, payment_intent_id)
        return self._ticket(doc) if doc else None
    
    def generate_qr_code(self, ticket_id: int) -> Optional[Ticket]:
        native_id = self.registry.to_native(mongo.TICKETS, ticket_id)
        if native_id is None:
            return None
        doc = self.backend.generate_qr_code(native_id)
        return self._ticket(doc) if doc else None
    
    def mark_ticket_used(self, ticket_id: int) -> Optional[Ticket]:
        native_id = self.registry.to_native(mongo.TICKETS, ticket_id)
        if native_id is None:
            return None
        doc = self.backend.mark_ticket_used(native_id)
        return self._ticket(doc) if doc else None
    
    def delete_ticket(self, ticket_id: int) -> bool:
        native_id = self.registry.to_native(mongo.TICKETS, ticket_id)
        if native_id is None:
            return False
        return self.backend.delete_ticket(native_id)
    
    # Conversation operations
    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        native_id = self.registry.to_native(mongo.CONVERSATIONS, conversation_id)
        if native_id is None:
            return None
        doc = self.backend.get_conversation(native_id)
        return self._conversation(doc) if doc else None
    
    def create_conversation(self, conversation: ConversationCreate) -> Conversation:
        user_id = self.registry.to_native(mongo.USERS, conversation.user_id)
        doc = self.backend.create_conversation(conversation.session_id, conversation.language, user_id)
        return self._conversation(doc)
    
    # Message operations
    def create_message(self, message: MessageCreate) -> Message:
        conversation_id = self.registry.to_native(mongo.CONVERSATIONS, message.conversation_id)
        if conversation_id is None:
            raise ConversationNotFoundError(message.conversation_id)
        doc = self.backend.create_message(conversation_id, message.is_from_user, message.content)
        return self._message(doc)
    
    def get_messages_by_conversation_id(self, conversation_id: int) -> List[Message]:
        native_id = self.registry.to_native(mongo.CONVERSATIONS, conversation_id)
        if native_id is None:
            return []
        return [self._message(doc) for doc in self.backend.get_messages_by_conversation_id(native_id)]
    
    # Analytics operations
    def get_analytics(self) -> List[AnalyticsEntry]:
        return [self._analytics_entry(doc) for doc in self.backend.get_analytics()]
    
    def create_analytics_entry(self, entry: AnalyticsCreate) -> AnalyticsEntry:
        popular_exhibition_id = self.registry.to_native(mongo.EXHIBITIONS, entry.popular_exhibition_id)
        doc = self.backend.create_analytics_entry(entry, popular_exhibition_id)
        return self._analytics_entry(doc)
    
    # Testimonial operations
    def get_approved_testimonials(self) -> List[Testimonial]:
        return [self._testimonial(doc) for doc in self.backend.get_approved_testimonials()]
    
    def create_testimonial(self, testimonial: TestimonialCreate) -> Testimonial:
        return self._testimonial(self.backend.create_testimonial(testimonial))
    
    def approve_testimonial(self, testimonial_id: int) -> Optional[Testimonial]:
        native_id = self.registry.to_native(mongo.TESTIMONIALS, testimonial_id)
        if native_id is None:
            return None
        doc = self.backend.approve_testimonial(native_id)
        return self._testimonial(doc) if doc else None
