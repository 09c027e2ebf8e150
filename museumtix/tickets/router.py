from fastapi import APIRouter, Depends, HTTPException, Response, status
from typing import List

from museumtix.auth.dependencies import get_current_user, require_admin
from museumtix.context import get_storage
from museumtix.schemas import Ticket, User
from museumtix.storage.interfaces import IStorage
from museumtix.tickets.schemas import TicketRequest
from museumtix.tickets.service import TicketLifecycle

router = APIRouter()


def get_lifecycle(storage: IStorage = Depends(get_storage)) -> TicketLifecycle:
    return TicketLifecycle(storage)


def get_accessible_ticket(ticket_id: int, user: User, lifecycle: TicketLifecycle) -> Ticket:
    """Load a ticket the caller owns (any ticket for admins); 404 or 403 otherwise"""
    ticket = lifecycle.storage.get_ticket(ticket_id)
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found"
        )
    if ticket.user_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized"
        )
    return lifecycle.ensure_qr(ticket)

@router.get("", response_model=List[Ticket])
def get_tickets(
    current_user: User = Depends(get_current_user),
    lifecycle: TicketLifecycle = Depends(get_lifecycle)
):
    """Admins see every ticket, other users only their own"""
    return lifecycle.list_for(current_user)

@router.post("", response_model=Ticket, status_code=status.HTTP_201_CREATED)
def create_ticket(
    request: TicketRequest,
    current_user: User = Depends(get_current_user),
    lifecycle: TicketLifecycle = Depends(get_lifecycle)
):
    """Book a ticket for the caller"""
    return lifecycle.create(current_user, request)

@router.get("/{ticket_id}", response_model=Ticket)
def get_ticket(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    lifecycle: TicketLifecycle = Depends(get_lifecycle)
):
    return get_accessible_ticket(ticket_id, current_user, lifecycle)

@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_ticket(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    lifecycle: TicketLifecycle = Depends(get_lifecycle)
):
    """Cancel an unpaid ticket for a future visit"""
    ticket = get_accessible_ticket(ticket_id, current_user, lifecycle)
    lifecycle.cancel(ticket)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/{ticket_id}/use", response_model=Ticket)
def use_ticket(
    ticket_id: int,
    admin: User = Depends(require_admin),
    lifecycle: TicketLifecycle = Depends(get_lifecycle)
):
    """Mark a paid ticket as used at the entrance (admin only)"""
    ticket = get_accessible_ticket(ticket_id, admin, lifecycle)
    return lifecycle.mark_used(ticket)

@router.post("/{ticket_id}/qr", response_model=Ticket)
def regenerate_qr_code(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    lifecycle: TicketLifecycle = Depends(get_lifecycle)
):
    """Issue a fresh QR code for a paid ticket"""
    ticket = get_accessible_ticket(ticket_id, current_user, lifecycle)
    return lifecycle.regenerate_qr(ticket)
