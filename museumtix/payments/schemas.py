from pydantic import Field

from museumtix.schemas import CamelModel, Ticket


class PaymentRequest(CamelModel):
    ticket_id: int = Field(..., gt=0)

class PaymentResult(CamelModel):
    success: bool
    ticket: Ticket
