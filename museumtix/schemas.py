from pydantic import BaseModel, Field, computed_field, validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime, timezone

GENERAL_ADMISSION = "General Admission"

# Widest integer key a backend can hold (signed 64-bit)
MAX_ID = 2**63 - 1


def is_storable_id(value: Optional[int]) -> bool:
    return value is not None and -MAX_ID - 1 <= value <= MAX_ID


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise timestamps to naive UTC, the representation every backend stores"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CamelModel(BaseModel):
    """Base for API-facing models: snake_case in Python, camelCase on the wire"""
    
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

# ================================
# Users
# ================================
class UserCreate(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)  # already hashed when it reaches storage
    email: str = Field(..., min_length=3)
    full_name: Optional[str] = None
    language_preference: str = "en"
    is_admin: bool = False

class User(CamelModel):
    id: int
    username: str
    password: str
    email: str
    full_name: Optional[str] = None
    is_admin: bool = False
    language_preference: str = "en"
    created_at: datetime

class PublicUser(CamelModel):
    """User without the password hash"""
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    is_admin: bool = False
    language_preference: str = "en"
    created_at: datetime

# ================================
# Exhibitions
# ================================
class ExhibitionCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: str
    image_url: Optional[str] = None
    start_date: datetime
    end_date: datetime
    is_featured: bool = False
    is_new: bool = False
    
    @validator("start_date", "end_date")
    def normalise_dates(cls, value):
        return as_naive_utc(value)

class Exhibition(ExhibitionCreate):
    id: int
    created_at: datetime

# ================================
# Ticket types
# ================================
class TicketTypeCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str
    price: float = Field(..., gt=0)
    color: str = "primary"
    includes: List[str] = []
    is_popular: bool = False

class TicketType(TicketTypeCreate):
    id: int
    created_at: datetime

# ================================
# Tickets
# ================================
class TicketCreate(CamelModel):
    """Ticket request; total price is computed by storage, never supplied"""
    user_id: int
    ticket_type_id: int
    exhibition_id: Optional[int] = None
    quantity: int = Field(..., gt=0)
    visit_date: datetime
    
    @validator("visit_date")
    def normalise_visit_date(cls, value):
        return as_naive_utc(value)

class Ticket(CamelModel):
    id: int
    user_id: int
    ticket_type_id: int
    exhibition_id: Optional[int] = None
    quantity: int
    visit_date: datetime
    total_price: float
    is_paid: bool = False
    payment_intent_id: Optional[str] = None
    qr_code_data: Optional[str] = None
    is_used: bool = False
    created_at: datetime
    
    # Resolved relations; None when the referenced row is gone
    ticket_type: Optional[TicketType] = None
    exhibition: Optional[Exhibition] = None
    
    @computed_field(alias="exhibitionTitle")
    @property
    def exhibition_title(self) -> str:
        if self.exhibition is None:
            return GENERAL_ADMISSION
        return self.exhibition.title

# ================================
# Chat
# ================================
class ConversationCreate(CamelModel):
    user_id: Optional[int] = None
    session_id: str
    language: Optional[str] = "en"

class Conversation(CamelModel):
    id: int
    user_id: Optional[int] = None
    session_id: str
    language: str = "en"
    created_at: datetime

class MessageCreate(CamelModel):
    conversation_id: int
    is_from_user: bool
    content: str

class Message(MessageCreate):
    id: int
    created_at: datetime

# ================================
# Analytics
# ================================
class AnalyticsCreate(CamelModel):
    date: Optional[datetime] = None
    visitor_count: int = Field(0, ge=0)
    revenue: float = Field(0, ge=0)
    popular_exhibition_id: Optional[int] = Field(None, ge=1, le=MAX_ID)
    average_visit_duration: Optional[int] = Field(None, ge=0)
    
    @validator("date")
    def normalise_date(cls, value):
        return as_naive_utc(value)

class AnalyticsEntry(CamelModel):
    id: int
    date: datetime
    visitor_count: int
    revenue: float
    popular_exhibition_id: Optional[int] = None
    average_visit_duration: Optional[int] = None
    created_at: datetime

# ================================
# Testimonials
# ================================
class TestimonialCreate(CamelModel):
    name: str = Field(..., min_length=1)
    role: Optional[str] = None
    content: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    avatar_url: Optional[str] = None

class Testimonial(TestimonialCreate):
    id: int
    is_approved: bool = False
    created_at: datetime
