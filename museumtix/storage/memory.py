import logging
from datetime import datetime
from typing import Dict, List, Optional

from museumtix.errors import DuplicateUserError, TicketTypeNotFoundError
from museumtix.qr import generate_qr_code_data
from museumtix.schemas import (
    AnalyticsCreate, AnalyticsEntry, Conversation, ConversationCreate, Exhibition,
    ExhibitionCreate, Message, MessageCreate, Testimonial, TestimonialCreate, Ticket,
    TicketCreate, TicketType, TicketTypeCreate, User, UserCreate,
)
from museumtix.storage.interfaces import IStorage
from museumtix.storage.seed import seed_storage
from museumtix.storage.sessions import MemorySessionStore

logger = logging.getLogger(__name__)


class MemStorage(IStorage):
    """Map-backed storage seeded at construction; nothing survives a restart"""
    
    def __init__(self, seed: bool = True):
        self.users: Dict[int, User] = {}
        self.exhibitions: Dict[int, Exhibition] = {}
        self.ticket_types: Dict[int, TicketType] = {}
        self.tickets: Dict[int, Ticket] = {}
        self.conversations: Dict[int, Conversation] = {}
        self.messages: Dict[int, Message] = {}
        self.analytics_entries: Dict[int, AnalyticsEntry] = {}
        self.testimonials: Dict[int, Testimonial] = {}
        self.session_store = MemorySessionStore()
        
        # One monotonically increasing counter per entity type
        self._counters: Dict[str, int] = {}
        
        if seed:
            seed_storage(self)
            logger.info("In-memory storage seeded with fixture data")
    
    def _next_id(self, entity: str) -> int:
        self._counters[entity] = self._counters.get(entity, 0) + 1
        return self._counters[entity]
    
    # User operations
    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)
    
    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)
    
    def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)
    
    def create_user(self, user: UserCreate) -> User:
        if self.get_user_by_username(user.username):
            raise DuplicateUserError("username")
        if self.get_user_by_email(user.email):
            raise DuplicateUserError("email")
        
        db_user = User(
            id=self._next_id("users"),
            created_at=datetime.utcnow(),
            **user.dict()
        )
        self.users[db_user.id] = db_user
        return db_user
    
    def get_all_users(self) -> List[User]:
        return list(self.users.values())
    
    # Exhibition operations
    def get_exhibition(self, exhibition_id: int) -> Optional[Exhibition]:
        return self.exhibitions.get(exhibition_id)
    
    def _by_start_date(self, exhibitions) -> List[Exhibition]:
        return sorted(exhibitions, key=lambda e: (e.start_date, e.id))
    
    def get_all_exhibitions(self) -> List[Exhibition]:
        return self._by_start_date(self.exhibitions.values())
    
    def get_featured_exhibitions(self) -> List[Exhibition]:
        return self._by_start_date(e for e in self.exhibitions.values() if e.is_featured)
    
    def create_exhibition(self, exhibition: ExhibitionCreate) -> Exhibition:
        db_exhibition = Exhibition(
            id=self._next_id("exhibitions"),
            created_at=datetime.utcnow(),
            **exhibition.dict()
        )
        self.exhibitions[db_exhibition.id] = db_exhibition
        return db_exhibition
    
    def update_exhibition(self, exhibition_id: int, exhibition: ExhibitionCreate) -> Optional[Exhibition]:
        current = self.exhibitions.get(exhibition_id)
        if not current:
            return None
        
        update_data = exhibition.dict()
        # An omitted image keeps the current one
        if not update_data["image_url"]:
            update_data["image_url"] = current.image_url
        
        updated = current.copy(update=update_data)
        self.exhibitions[exhibition_id] = updated
        return updated
    
    def delete_exhibition(self, exhibition_id: int) -> bool:
        return self.exhibitions.pop(exhibition_id, None) is not None
    
    # Ticket type operations
    def get_ticket_type(self, ticket_type_id: int) -> Optional[TicketType]:
        return self.ticket_types.get(ticket_type_id)
    
    def get_all_ticket_types(self) -> List[TicketType]:
        return list(self.ticket_types.values())
    
    def create_ticket_type(self, ticket_type: TicketTypeCreate) -> TicketType:
        db_ticket_type = TicketType(
            id=self._next_id("ticket_types"),
            created_at=datetime.utcnow(),
            **ticket_type.dict()
        )
        self.ticket_types[db_ticket_type.id] = db_ticket_type
        return db_ticket_type
    
    def update_ticket_type(self, ticket_type_id: int, ticket_type: TicketTypeCreate) -> Optional[TicketType]:
        current = self.ticket_types.get(ticket_type_id)
        if not current:
            return None
        
        update_data = ticket_type.dict()
        if not update_data["color"]:
            update_data["color"] = current.color
        
        updated = current.copy(update=update_data)
        self.ticket_types[ticket_type_id] = updated
        return updated
    
    def delete_ticket_type(self, ticket_type_id: int) -> bool:
        return self.ticket_types.pop(ticket_type_id, None) is not None
    
    # Ticket operations
    def _resolve(self, ticket: Ticket) -> Ticket:
        """Attach the current ticket type and exhibition to a stored ticket"""
        exhibition = None
        if ticket.exhibition_id is not None:
            exhibition = self.exhibitions.get(ticket.exhibition_id)
        return ticket.copy(update={
            "ticket_type": self.ticket_types.get(ticket.ticket_type_id),
            "exhibition": exhibition,
        })
    
    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if not ticket:
            return None
        return self._resolve(ticket)
    
    def _newest_first(self, tickets) -> List[Ticket]:
        ordered = sorted(tickets, key=lambda t: (t.created_at, t.id), reverse=True)
        return [self._resolve(t) for t in ordered]
    
    def get_all_tickets(self) -> List[Ticket]:
        return self._newest_first(self.tickets.values())
    
    def get_tickets_by_user_id(self, user_id: int) -> List[Ticket]:
        return self._newest_first(t for t in self.tickets.values() if t.user_id == user_id)
    
    def create_ticket(self, ticket: TicketCreate) -> Ticket:
        ticket_type = self.ticket_types.get(ticket.ticket_type_id)
        if not ticket_type:
            raise TicketTypeNotFoundError(ticket.ticket_type_id)
        
        db_ticket = Ticket(
            id=self._next_id("tickets"),
            user_id=ticket.user_id,
            ticket_type_id=ticket.ticket_type_id,
            exhibition_id=ticket.exhibition_id,
            quantity=ticket.quantity,
            visit_date=ticket.visit_date,
            total_price=ticket_type.price * ticket.quantity,
            is_paid=False,
            payment_intent_id=None,
            qr_code_data=None,
            is_used=False,
            created_at=datetime.utcnow()
        )
        self.tickets[db_ticket.id] = db_ticket
        return self._resolve(db_ticket)
    
    def _update_ticket(self, ticket_id: int, **changes) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if not ticket:
            return None
        updated = ticket.copy(update=changes)
        self.tickets[ticket_id] = updated
        return self._resolve(updated)
    
    def mark_ticket_paid(self, ticket_id: int, payment_intent_id: str) -> Optional[Ticket]:
        if not self._update_ticket(ticket_id, is_paid=True, payment_intent_id=payment_intent_id):
            return None
        return self.generate_qr_code(ticket_id)
    
    def generate_qr_code(self, ticket_id: int) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if not ticket:
            return None
        qr_code_data = generate_qr_code_data(
            ticket.id, ticket.user_id, ticket.ticket_type_id,
            ticket.quantity, ticket.visit_date, ticket.is_paid
        )
        return self._update_ticket(ticket_id, qr_code_data=qr_code_data)
    
    def mark_ticket_used(self, ticket_id: int) -> Optional[Ticket]:
        return self._update_ticket(ticket_id, is_used=True)
    
    def delete_ticket(self, ticket_id: int) -> bool:
        return self.tickets.pop(ticket_id, None) is not None
    
    # Conversation operations
    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        return self.conversations.get(conversation_id)
    
    def create_conversation(self, conversation: ConversationCreate) -> Conversation:
        db_conversation = Conversation(
            id=self._next_id("conversations"),
            user_id=conversation.user_id,
            session_id=conversation.session_id,
            language=conversation.language or "en",
            created_at=datetime.utcnow()
        )
        self.conversations[db_conversation.id] = db_conversation
        return db_conversation
    
    # Message operations
    def create_message(self, message: MessageCreate) -> Message:
        db_message = Message(
            id=self._next_id("messages"),
            created_at=datetime.utcnow(),
            **message.dict()
        )
        self.messages[db_message.id] = db_message
        return db_message
    
    def get_messages_by_conversation_id(self, conversation_id: int) -> List[Message]:
        messages = [m for m in self.messages.values() if m.conversation_id == conversation_id]
        return sorted(messages, key=lambda m: (m.created_at, m.id))
    
    # Analytics operations
    def get_analytics(self) -> List[AnalyticsEntry]:
        return list(self.analytics_entries.values())
    
    def create_analytics_entry(self, entry: AnalyticsCreate) -> AnalyticsEntry:
        now = datetime.utcnow()
        db_entry = AnalyticsEntry(
            id=self._next_id("analytics"),
            date=entry.date or now,
            visitor_count=entry.visitor_count,
            revenue=entry.revenue,
            popular_exhibition_id=entry.popular_exhibition_id,
            average_visit_duration=entry.average_visit_duration,
            created_at=now
        )
        self.analytics_entries[db_entry.id] = db_entry
        return db_entry
    
    # Testimonial operations
    def get_approved_testimonials(self) -> List[Testimonial]:
        approved = [t for t in self.testimonials.values() if t.is_approved]
        return sorted(approved, key=lambda t: (t.created_at, t.id), reverse=True)
    
    def create_testimonial(self, testimonial: TestimonialCreate) -> Testimonial:
        db_testimonial = Testimonial(
            id=self._next_id("testimonials"),
            is_approved=False,
            created_at=datetime.utcnow(),
            **testimonial.dict()
        )
        self.testimonials[db_testimonial.id] = db_testimonial
        return db_testimonial
    
    def approve_testimonial(self, testimonial_id: int) -> Optional[Testimonial]:
        testimonial = self.testimonials.get(testimonial_id)
        if not testimonial:
            return None
        approved = testimonial.copy(update={"is_approved": True})
        self.testimonials[testimonial_id] = approved
        return approved
