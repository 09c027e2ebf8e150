"""Storage interface (repository pattern).

Every backend satisfies this contract with small integer identifiers. A missing
row is reported by returning ``None`` (``False`` for deletes), never by raising;
the one exception is ticket creation, which raises ``TicketTypeNotFoundError``
when the referenced ticket type does not exist.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from museumtix.schemas import (
    AnalyticsCreate, AnalyticsEntry, Conversation, ConversationCreate, Exhibition,
    ExhibitionCreate, Message, MessageCreate, Testimonial, TestimonialCreate, Ticket,
    TicketCreate, TicketType, TicketTypeCreate, User, UserCreate,
)
from museumtix.storage.sessions import SessionStore


class IStorage(ABC):
    """Interface for all persistence operations of the booking service."""

    session_store: SessionStore

    # User operations
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Return a user by ID, or None if not found."""
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    def create_user(self, user: UserCreate) -> User:
        """Insert a user. Raises DuplicateUserError if username or email is taken."""
        ...

    @abstractmethod
    def get_all_users(self) -> List[User]:
        ...

    # Exhibition operations
    @abstractmethod
    def get_exhibition(self, exhibition_id: int) -> Optional[Exhibition]:
        ...

    @abstractmethod
    def get_all_exhibitions(self) -> List[Exhibition]:
        ...

    @abstractmethod
    def get_featured_exhibitions(self) -> List[Exhibition]:
        """Return exhibitions whose featured flag is set."""
        ...

    @abstractmethod
    def create_exhibition(self, exhibition: ExhibitionCreate) -> Exhibition:
        ...

    @abstractmethod
    def update_exhibition(self, exhibition_id: int, exhibition: ExhibitionCreate) -> Optional[Exhibition]:
        """Replace all mutable fields; None if the exhibition does not exist."""
        ...

    @abstractmethod
    def delete_exhibition(self, exhibition_id: int) -> bool:
        """Delete an exhibition; True if a row existed. Tickets are not touched."""
        ...

    # Ticket type operations
    @abstractmethod
    def get_ticket_type(self, ticket_type_id: int) -> Optional[TicketType]:
        ...

    @abstractmethod
    def get_all_ticket_types(self) -> List[TicketType]:
        ...

    @abstractmethod
    def create_ticket_type(self, ticket_type: TicketTypeCreate) -> TicketType:
        ...

    @abstractmethod
    def update_ticket_type(self, ticket_type_id: int, ticket_type: TicketTypeCreate) -> Optional[TicketType]:
        ...

    @abstractmethod
    def delete_ticket_type(self, ticket_type_id: int) -> bool:
        ...

    # Ticket operations
    @abstractmethod
    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        """Return a ticket with its ticket type and exhibition resolved."""
        ...

    @abstractmethod
    def get_all_tickets(self) -> List[Ticket]:
        ...

    @abstractmethod
    def get_tickets_by_user_id(self, user_id: int) -> List[Ticket]:
        ...

    @abstractmethod
    def create_ticket(self, ticket: TicketCreate) -> Ticket:
        """Insert an unpaid ticket priced at ticket type price times quantity.

        Raises:
            TicketTypeNotFoundError: If the ticket type does not exist.
        """
        ...

    @abstractmethod
    def mark_ticket_paid(self, ticket_id: int, payment_intent_id: str) -> Optional[Ticket]:
        """Set the paid flag and payment reference, then generate the QR payload."""
        ...

    @abstractmethod
    def generate_qr_code(self, ticket_id: int) -> Optional[Ticket]:
        """Regenerate and overwrite the QR payload."""
        ...

    @abstractmethod
    def mark_ticket_used(self, ticket_id: int) -> Optional[Ticket]:
        ...

    @abstractmethod
    def delete_ticket(self, ticket_id: int) -> bool:
        ...

    # Conversation operations
    @abstractmethod
    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        ...

    @abstractmethod
    def create_conversation(self, conversation: ConversationCreate) -> Conversation:
        """Insert a conversation; language defaults to "en"."""
        ...

    # Message operations
    @abstractmethod
    def create_message(self, message: MessageCreate) -> Message:
        ...

    @abstractmethod
    def get_messages_by_conversation_id(self, conversation_id: int) -> List[Message]:
        """Return messages ordered by created_at ascending."""
        ...

    # Analytics operations
    @abstractmethod
    def get_analytics(self) -> List[AnalyticsEntry]:
        ...

    @abstractmethod
    def create_analytics_entry(self, entry: AnalyticsCreate) -> AnalyticsEntry:
        ...

    # Testimonial operations
    @abstractmethod
    def get_approved_testimonials(self) -> List[Testimonial]:
        ...

    @abstractmethod
    def create_testimonial(self, testimonial: TestimonialCreate) -> Testimonial:
        """Insert a testimonial; it always starts unapproved."""
        ...

    @abstractmethod
    def approve_testimonial(self, testimonial_id: int) -> Optional[Testimonial]:
        ...

    # Lifecycle
    def initialize_database(self) -> None:
        """Create schema and seed fixture data when the store holds no users."""
        return None

    def close(self) -> None:
        return None
