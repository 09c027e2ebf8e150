import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from museumtix import models
from museumtix.database import Base, create_db_engine, create_session_factory
from museumtix.errors import DuplicateUserError, TicketTypeNotFoundError
from museumtix.qr import generate_qr_code_data
from museumtix.schemas import (
    AnalyticsCreate, AnalyticsEntry, Conversation, ConversationCreate, Exhibition,
    ExhibitionCreate, Message, MessageCreate, Testimonial, TestimonialCreate, Ticket,
    TicketCreate, TicketType, TicketTypeCreate, User, UserCreate, is_storable_id,
)
from museumtix.storage.interfaces import IStorage
from museumtix.storage.seed import seed_storage
from museumtix.storage.sessions import SqlSessionStore

logger = logging.getLogger(__name__)


class DatabaseStorage(IStorage):
    """Relational storage on SQLAlchemy; one ORM session per operation"""
    
    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = create_session_factory(engine)
        self.session_store = SqlSessionStore(self.SessionLocal)
    
    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "DatabaseStorage":
        return cls(create_db_engine(url, echo=echo))
    
    def initialize_database(self, seed: bool = True) -> None:
        """Create missing tables and seed fixture data into an empty users table"""
        Base.metadata.create_all(bind=self.engine)
        if not seed:
            return
        
        with self.SessionLocal() as db:
            user_count = db.query(models.User).count()
        
        if user_count == 0:
            logger.info("Seeding database with initial data...")
            seed_storage(self)
            logger.info("Database seeded successfully")
        else:
            logger.info("Database already contains %d users, skipping seed", user_count)
    
    def close(self) -> None:
        self.engine.dispose()
    
    # User operations
    def get_user(self, user_id: int) -> Optional[User]:
        if not is_storable_id(user_id):
            return None
        with self.SessionLocal() as db:
            db_user = db.query(models.User).filter(models.User.id == user_id).first()
            return User.from_orm(db_user) if db_user else None
    
    def get_user_by_username(self, username: str) -> Optional[User]:
        with self.SessionLocal() as db:
            db_user = db.query(models.User).filter(models.User.username == username).first()
            return User.from_orm(db_user) if db_user else None
    
    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.SessionLocal() as db:
            db_user = db.query(models.User).filter(models.User.email == email).first()
            return User.from_orm(db_user) if db_user else None
    
    def create_user(self, user: UserCreate) -> User:
        db_user = models.User(created_at=datetime.utcnow(), **user.dict())
        
        with self.SessionLocal() as db:
            try:
                db.add(db_user)
                db.commit()
                db.refresh(db_user)
            except IntegrityError:
                db.rollback()
                exists = db.query(models.User).filter(models.User.username == user.username).first()
                raise DuplicateUserError("username" if exists else "email")
            return User.from_orm(db_user)
    
    def get_all_users(self) -> List[User]:
        with self.SessionLocal() as db:
            return [User.from_orm(u) for u in db.query(models.User).order_by(models.User.id).all()]
    
    # Exhibition operations
    def get_exhibition(self, exhibition_id: int) -> Optional[Exhibition]:
        if not is_storable_id(exhibition_id):
            return None
        with self.SessionLocal() as db:
            db_exhibition = db.query(models.Exhibition).filter(models.Exhibition.id == exhibition_id).first()
            return Exhibition.from_orm(db_exhibition) if db_exhibition else None
    
    def get_all_exhibitions(self) -> List[Exhibition]:
        with self.SessionLocal() as db:
            exhibitions = db.query(models.Exhibition).order_by(
                models.Exhibition.start_date, models.Exhibition.id
            ).all()
            return [Exhibition.from_orm(e) for e in exhibitions]
    
    def get_featured_exhibitions(self) -> List[Exhibition]:
        with self.SessionLocal() as db:
            exhibitions = db.query(models.Exhibition).filter(
                models.Exhibition.is_featured == True
            ).order_by(models.Exhibition.start_date, models.Exhibition.id).all()
            return [Exhibition.from_orm(e) for e in exhibitions]
    
    def create_exhibition(self, exhibition: ExhibitionCreate) -> Exhibition:
        db_exhibition = models.Exhibition(created_at=datetime.utcnow(), **exhibition.dict())
        with self.SessionLocal() as db:
            db.add(db_exhibition)
            db.commit()
            db.refresh(db_exhibition)
            return Exhibition.from_orm(db_exhibition)
    
    def update_exhibition(self, exhibition_id: int, exhibition: ExhibitionCreate) -> Optional[Exhibition]:
        if not is_storable_id(exhibition_id):
            return None
        update_data = exhibition.dict()
        if not update_data["image_url"]:
            update_data.pop("image_url")
        
        with self.SessionLocal() as db:
            updated = db.query(models.Exhibition).filter(
                models.Exhibition.id == exhibition_id
            ).update(update_data, synchronize_session=False)
            db.commit()
            if not updated:
                return None
            db_exhibition = db.query(models.Exhibition).filter(models.Exhibition.id == exhibition_id).first()
            return Exhibition.from_orm(db_exhibition)
    
    def delete_exhibition(self, exhibition_id: int) -> bool:
        if not is_storable_id(exhibition_id):
            return False
        with self.SessionLocal() as db:
            deleted = db.query(models.Exhibition).filter(models.Exhibition.id == exhibition_id).delete()
            db.commit()
            return deleted > 0
    
    # Ticket type operations
    def get_ticket_type(self, ticket_type_id: int) -> Optional[TicketType]:
        if not is_storable_id(ticket_type_id):
            return None
        with self.SessionLocal() as db:
            db_ticket_type = db.query(models.TicketType).filter(models.TicketType.id == ticket_type_id).first()
            return TicketType.from_orm(db_ticket_type) if db_ticket_type else None
    
    def get_all_ticket_types(self) -> List[TicketType]:
        with self.SessionLocal() as db:
            return [TicketType.from_orm(t) for t in db.query(models.TicketType).order_by(models.TicketType.id).all()]
    
    def create_ticket_type(self, ticket_type: TicketTypeCreate) -> TicketType:
        db_ticket_type = models.TicketType(created_at=datetime.utcnow(), **ticket_type.dict())
        with self.SessionLocal() as db:
            db.add(db_ticket_type)
            db.commit()
            db.refresh(db_ticket_type)
            return TicketType.from_orm(db_ticket_type)
    
    def update_ticket_type(self, ticket_type_id: int, ticket_type: TicketTypeCreate) -> Optional[TicketType]:
        if not is_storable_id(ticket_type_id):
            return None
        update_data = ticket_type.dict()
        if not update_data["color"]:
            update_data.pop("color")
        
        with self.SessionLocal() as db:
            updated = db.query(models.TicketType).filter(
                models.TicketType.id == ticket_type_id
            ).update(update_data, synchronize_session=False)
            db.commit()
            if not updated:
                return None
            db_ticket_type = db.query(models.TicketType).filter(models.TicketType.id == ticket_type_id).first()
            return TicketType.from_orm(db_ticket_type)
    
    def delete_ticket_type(self, ticket_type_id: int) -> bool:
        if not is_storable_id(ticket_type_id):
            return False
        with self.SessionLocal() as db:
            deleted = db.query(models.TicketType).filter(models.TicketType.id == ticket_type_id).delete()
            db.commit()
            return deleted > 0
    
    # Ticket operations
    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        if not is_storable_id(ticket_id):
            return None
        with self.SessionLocal() as db:
            db_ticket = db.query(models.Ticket).filter(models.Ticket.id == ticket_id).first()
            return Ticket.from_orm(db_ticket) if db_ticket else None
    
    def get_all_tickets(self) -> List[Ticket]:
        with self.SessionLocal() as db:
            tickets = db.query(models.Ticket).order_by(models.Ticket.created_at.desc(), models.Ticket.id.desc()).all()
            return [Ticket.from_orm(t) for t in tickets]
    
    def get_tickets_by_user_id(self, user_id: int) -> List[Ticket]:
        if not is_storable_id(user_id):
            return []
        with self.SessionLocal() as db:
            tickets = db.query(models.Ticket).filter(
                models.Ticket.user_id == user_id
            ).order_by(models.Ticket.created_at.desc(), models.Ticket.id.desc()).all()
            return [Ticket.from_orm(t) for t in tickets]
    
    def create_ticket(self, ticket: TicketCreate) -> Ticket:
        if not is_storable_id(ticket.ticket_type_id):
            raise TicketTypeNotFoundError(ticket.ticket_type_id)
        with self.SessionLocal() as db:
            ticket_type = db.query(models.TicketType).filter(models.TicketType.id == ticket.ticket_type_id).first()
            if not ticket_type:
                raise TicketTypeNotFoundError(ticket.ticket_type_id)
            
            db_ticket = models.Ticket(
                user_id=ticket.user_id,
                ticket_type_id=ticket.ticket_type_id,
                exhibition_id=ticket.exhibition_id,
                quantity=ticket.quantity,
                visit_date=ticket.visit_date,
                total_price=ticket_type.price * ticket.quantity,
                is_paid=False,
                is_used=False,
                created_at=datetime.utcnow()
            )
            db.add(db_ticket)
            db.commit()
            ticket_id = db_ticket.id
        
        return self.get_ticket(ticket_id)
    
    def mark_ticket_paid(self, ticket_id: int, payment_intent_id: str) -> Optional[Ticket]:
        if not is_storable_id(ticket_id):
            return None
        # Payment flag and QR payload are committed together
        with self.SessionLocal() as db:
            db_ticket = db.query(models.Ticket).filter(models.Ticket.id == ticket_id).first()
            if not db_ticket:
                return None
            db_ticket.is_paid = True
            db_ticket.payment_intent_id = payment_intent_id
            db_ticket.qr_code_data = self._qr_code_for(db_ticket)
            db.commit()
        
        return self.get_ticket(ticket_id)
    
    def generate_qr_code(self, ticket_id: int) -> Optional[Ticket]:
        if not is_storable_id(ticket_id):
            return None
        with self.SessionLocal() as db:
            db_ticket = db.query(models.Ticket).filter(models.Ticket.id == ticket_id).first()
            if not db_ticket:
                return None
            db_ticket.qr_code_data = self._qr_code_for(db_ticket)
            db.commit()
        
        return self.get_ticket(ticket_id)
    
    def mark_ticket_used(self, ticket_id: int) -> Optional[Ticket]:
        if not is_storable_id(ticket_id):
            return None
        with self.SessionLocal() as db:
            updated = db.query(models.Ticket).filter(
                models.Ticket.id == ticket_id
            ).update({"is_used": True}, synchronize_session=False)
            db.commit()
        
        return self.get_ticket(ticket_id) if updated else None
    
    def delete_ticket(self, ticket_id: int) -> bool:
        if not is_storable_id(ticket_id):
            return False
        with self.SessionLocal() as db:
            deleted = db.query(models.Ticket).filter(models.Ticket.id == ticket_id).delete()
            db.commit()
            return deleted > 0
    
    @staticmethod
    def _qr_code_for(db_ticket: models.Ticket) -> str:
        return generate_qr_code_data(
            db_ticket.id, db_ticket.user_id, db_ticket.ticket_type_id,
            db_ticket.quantity, db_ticket.visit_date, db_ticket.is_paid
        )
    
    # Conversation operations
    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        if not is_storable_id(conversation_id):
            return None
        with self.SessionLocal() as db:
            db_conversation = db.query(models.Conversation).filter(
                models.Conversation.id == conversation_id
            ).first()
            return Conversation.from_orm(db_conversation) if db_conversation else None
    
    def create_conversation(self, conversation: ConversationCreate) -> Conversation:
        db_conversation = models.Conversation(
            user_id=conversation.user_id,
            session_id=conversation.session_id,
            language=conversation.language or "en",
            created_at=datetime.utcnow()
        )
        with self.SessionLocal() as db:
            db.add(db_conversation)
            db.commit()
            db.refresh(db_conversation)
            return Conversation.from_orm(db_conversation)
    
    # Message operations
    def create_message(self, message: MessageCreate) -> Message:
        db_message = models.Message(created_at=datetime.utcnow(), **message.dict())
        with self.SessionLocal() as db:
            db.add(db_message)
            db.commit()
            db.refresh(db_message)
            return Message.from_orm(db_message)
    
    def get_messages_by_conversation_id(self, conversation_id: int) -> List[Message]:
        if not is_storable_id(conversation_id):
            return []
        with self.SessionLocal() as db:
            messages = db.query(models.Message).filter(
                models.Message.conversation_id == conversation_id
            ).order_by(models.Message.created_at, models.Message.id).all()
            return [Message.from_orm(m) for m in messages]
    
    # Analytics operations
    def get_analytics(self) -> List[AnalyticsEntry]:
        with self.SessionLocal() as db:
            entries = db.query(models.AnalyticsEntry).order_by(models.AnalyticsEntry.date).all()
            return [AnalyticsEntry.from_orm(e) for e in entries]
    
    def create_analytics_entry(self, entry: AnalyticsCreate) -> AnalyticsEntry:
        now = datetime.utcnow()
        db_entry = models.AnalyticsEntry(
            date=entry.date or now,
            visitor_count=entry.visitor_count,
            revenue=entry.revenue,
            popular_exhibition_id=entry.popular_exhibition_id,
            average_visit_duration=entry.average_visit_duration,
            created_at=now
        )
        with self.SessionLocal() as db:
            db.add(db_entry)
            db.commit()
            db.refresh(db_entry)
            return AnalyticsEntry.from_orm(db_entry)
    
    # Testimonial operations
    def get_approved_testimonials(self) -> List[Testimonial]:
        with self.SessionLocal() as db:
            testimonials = db.query(models.Testimonial).filter(
                models.Testimonial.is_approved == True
            ).order_by(models.Testimonial.created_at.desc(), models.Testimonial.id.desc()).all()
            return [Testimonial.from_orm(t) for t in testimonials]
    
    def create_testimonial(self, testimonial: TestimonialCreate) -> Testimonial:
        db_testimonial = models.Testimonial(
            is_approved=False,
            created_at=datetime.utcnow(),
            **testimonial.dict()
        )
        with self.SessionLocal() as db:
            db.add(db_testimonial)
            db.commit()
            db.refresh(db_testimonial)
            return Testimonial.from_orm(db_testimonial)
    
    def approve_testimonial(self, testimonial_id: int) -> Optional[Testimonial]:
        if not is_storable_id(testimonial_id):
            return None
        with self.SessionLocal() as db:
            db_testimonial = db.query(models.Testimonial).filter(
                models.Testimonial.id == testimonial_id
            ).first()
            if not db_testimonial:
                return None
            db_testimonial.is_approved = True
            db.commit()
            db.refresh(db_testimonial)
            return Testimonial.from_orm(db_testimonial)
