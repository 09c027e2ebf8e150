from pydantic import Field, validator
from typing import Optional
from datetime import datetime

from museumtix.schemas import CamelModel, as_naive_utc


class TicketRequest(CamelModel):
    """Booking request from a visitor; the owner is always the caller"""
    ticket_type_id: int
    exhibition_id: Optional[int] = None
    quantity: int = Field(..., gt=0)
    visit_date: datetime
    
    @validator("visit_date")
    def normalise_visit_date(cls, value):
        return as_naive_utc(value)
