from fastapi import APIRouter, Depends, HTTPException, Response, status
from typing import List

from museumtix.auth.dependencies import require_admin
from museumtix.context import get_storage
from museumtix.schemas import TicketType, TicketTypeCreate, User
from museumtix.storage.interfaces import IStorage

router = APIRouter()

@router.get("", response_model=List[TicketType])
def get_ticket_types(storage: IStorage = Depends(get_storage)):
    """List all ticket types"""
    return storage.get_all_ticket_types()

@router.post("", response_model=TicketType, status_code=status.HTTP_201_CREATED)
def create_ticket_type(
    ticket_type: TicketTypeCreate,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    return storage.create_ticket_type(ticket_type)

@router.put("/{ticket_type_id}", response_model=TicketType)
def update_ticket_type(
    ticket_type_id: int,
    ticket_type: TicketTypeCreate,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    """Replace a ticket type's fields; existing ticket prices are unaffected"""
    updated = storage.update_ticket_type(ticket_type_id, ticket_type)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket type not found"
        )
    return updated

@router.delete("/{ticket_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ticket_type(
    ticket_type_id: int,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    if not storage.delete_ticket_type(ticket_type_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket type not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
