import logging
import random
import time
from datetime import datetime
from typing import List

from museumtix.errors import ExhibitionNotFoundError, TicketStateError
from museumtix.schemas import Ticket, TicketCreate, User
from museumtix.storage.interfaces import IStorage
from museumtix.tickets.schemas import TicketRequest

logger = logging.getLogger(__name__)


def new_payment_reference() -> str:
    """Stub processor reference: pi_<epoch millis>_<0-999>"""
    return f"pi_{int(time.time() * 1000)}_{random.randint(0, 999)}"


class TicketLifecycle:
    """Ticket state transitions on top of the unguarded storage operations.
    
    Created (unpaid) -> Paid (payment reference and QR payload set) -> Used.
    Only unpaid, unused, future-dated tickets may be cancelled.
    """
    
    def __init__(self, storage: IStorage):
        self.storage = storage
    
    def create(self, user: User, request: TicketRequest) -> Ticket:
        """Book a ticket for the user; price is computed by storage"""
        if request.exhibition_id is not None:
            if not self.storage.get_exhibition(request.exhibition_id):
                raise ExhibitionNotFoundError(request.exhibition_id)
        
        ticket = self.storage.create_ticket(TicketCreate(
            user_id=user.id,
            ticket_type_id=request.ticket_type_id,
            exhibition_id=request.exhibition_id,
            quantity=request.quantity,
            visit_date=request.visit_date
        ))
        logger.info("Ticket %s created for user %s (%.2f)", ticket.id, user.id, ticket.total_price)
        return ticket
    
    def ensure_qr(self, ticket: Ticket) -> Ticket:
        """Issue a missing QR payload for a paid ticket; call only after access checks"""
        # A paid ticket can lack a QR payload if payment was recorded but the
        # payload write failed; issue it now
        if ticket.is_paid and not ticket.qr_code_data:
            logger.warning("Ticket %s is paid but has no QR code, regenerating", ticket.id)
            regenerated = self.storage.generate_qr_code(ticket.id)
            if regenerated:
                return regenerated
        return ticket
    
    def list_for(self, user: User) -> List[Ticket]:
        """All tickets for admins, own tickets for everyone else"""
        if user.is_admin:
            tickets = self.storage.get_all_tickets()
        else:
            tickets = self.storage.get_tickets_by_user_id(user.id)
        return [self.ensure_qr(t) for t in tickets]
    
    def confirm_payment(self, ticket: Ticket) -> Ticket:
        if ticket.is_paid:
            raise TicketStateError("Ticket already paid")
        
        payment_intent_id = new_payment_reference()
        paid = self.storage.mark_ticket_paid(ticket.id, payment_intent_id)
        if not paid:
            # Deleted between the lookup and the update
            raise TicketStateError("Ticket no longer exists")
        logger.info("Ticket %s paid with %s", ticket.id, payment_intent_id)
        return self.ensure_qr(paid)
    
    def mark_used(self, ticket: Ticket) -> Ticket:
        if not ticket.is_paid:
            raise TicketStateError("Ticket not paid")
        if ticket.is_used:
            raise TicketStateError("Ticket already used")
        
        used = self.storage.mark_ticket_used(ticket.id)
        if not used:
            raise TicketStateError("Ticket no longer exists")
        logger.info("Ticket %s used", ticket.id)
        return used
    
    def cancel(self, ticket: Ticket) -> None:
        if ticket.is_paid:
            raise TicketStateError("Paid tickets cannot be cancelled")
        if ticket.is_used:
            raise TicketStateError("Used tickets cannot be cancelled")
        if ticket.visit_date <= datetime.utcnow():
            raise TicketStateError("Only future visits can be cancelled")
        
        self.storage.delete_ticket(ticket.id)
        logger.info("Ticket %s cancelled", ticket.id)
    
    def regenerate_qr(self, ticket: Ticket) -> Ticket:
        if not ticket.is_paid:
            raise TicketStateError("Ticket not paid")
        regenerated = self.storage.generate_qr_code(ticket.id)
        if not regenerated:
            raise TicketStateError("Ticket no longer exists")
        return regenerated
