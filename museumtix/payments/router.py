from fastapi import APIRouter, Depends, HTTPException, status

from museumtix.auth.dependencies import get_current_user
from museumtix.context import get_storage
from museumtix.payments.schemas import PaymentRequest, PaymentResult
from museumtix.schemas import User
from museumtix.storage.interfaces import IStorage
from museumtix.tickets.service import TicketLifecycle

router = APIRouter()

@router.post("/process", response_model=PaymentResult)
def process_payment(
    payment: PaymentRequest,
    current_user: User = Depends(get_current_user),
    storage: IStorage = Depends(get_storage)
):
    """Confirm payment for one of the caller's tickets.
    
    No payment processor is contacted; a reference is generated locally.
    """
    lifecycle = TicketLifecycle(storage)
    
    ticket = storage.get_ticket(payment.ticket_id)
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found"
        )
    
    if ticket.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized"
        )
    
    # TicketStateError("Ticket already paid") surfaces as 400
    paid_ticket = lifecycle.confirm_payment(ticket)
    return PaymentResult(success=True, ticket=paid_ticket)
