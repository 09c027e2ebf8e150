from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from museumtix.database import Base

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255))
    is_admin = Column(Boolean, default=False, nullable=False)
    language_preference = Column(String(10), default="en", nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    
    # Relationships
    tickets = relationship("Ticket", back_populates="user")

# ================================
# Catalogue
# ================================
class Exhibition(Base):
    __tablename__ = "exhibitions"
    
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(1024))
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    is_new = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

class TicketType(Base):
    __tablename__ = "ticket_types"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    color = Column(String(50), default="primary", nullable=False)
    includes = Column(JSON, nullable=False, default=list)
    is_popular = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

# ================================
# Tickets
# ================================
class Ticket(Base):
    __tablename__ = "tickets"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # No FK constraint: deleting a ticket type or exhibition leaves the reference dangling
    ticket_type_id = Column(Integer, nullable=False, index=True)
    exhibition_id = Column(Integer, index=True)
    quantity = Column(Integer, nullable=False)
    visit_date = Column(DateTime, nullable=False)
    total_price = Column(Float, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    payment_intent_id = Column(String(255))
    qr_code_data = Column(Text)
    is_used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    
    # Relationships
    user = relationship("User", back_populates="tickets")
    ticket_type = relationship(
        "TicketType",
        primaryjoin="foreign(Ticket.ticket_type_id) == TicketType.id",
        viewonly=True,
        lazy="joined"
    )
    exhibition = relationship(
        "Exhibition",
        primaryjoin="foreign(Ticket.exhibition_id) == Exhibition.id",
        viewonly=True,
        lazy="joined"
    )

# ================================
# Chatbot
# ================================
class Conversation(Base):
    __tablename__ = "conversations"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"))
    session_id = Column(String(255), nullable=False, index=True)
    language = Column(String(10), default="en", nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    
    # Relationships
    messages = relationship("Message", back_populates="conversation", order_by="Message.created_at")

class Message(Base):
    __tablename__ = "messages"
    
    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False, index=True)
    is_from_user = Column(Boolean, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    
    # Relationships
    conversation = relationship("Conversation", back_populates="messages")

# ================================
# Analytics & testimonials
# ================================
class AnalyticsEntry(Base):
    __tablename__ = "analytics"
    
    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, server_default=func.now(), nullable=False)
    visitor_count = Column(Integer, default=0, nullable=False)
    revenue = Column(Float, default=0, nullable=False)
    popular_exhibition_id = Column(Integer)
    average_visit_duration = Column(Integer)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

class Testimonial(Base):
    __tablename__ = "testimonials"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(255))
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    avatar_url = Column(String(1024))
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

# ================================
# Login sessions
# ================================
class LoginSession(Base):
    __tablename__ = "sessions"
    
    sid = Column(String(64), primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    expires_at = Column(DateTime, nullable=False, index=True)
