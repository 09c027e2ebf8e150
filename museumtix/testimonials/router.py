from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from museumtix.auth.dependencies import get_current_user, require_admin
from museumtix.context import get_storage
from museumtix.schemas import Testimonial, TestimonialCreate, User
from museumtix.storage.interfaces import IStorage

router = APIRouter()

@router.get("", response_model=List[Testimonial])
def get_testimonials(storage: IStorage = Depends(get_storage)):
    """Approved testimonials only"""
    return storage.get_approved_testimonials()

@router.post("", response_model=Testimonial, status_code=status.HTTP_201_CREATED)
def create_testimonial(
    testimonial: TestimonialCreate,
    current_user: User = Depends(get_current_user),
    storage: IStorage = Depends(get_storage)
):
    """Submit a testimonial; it stays hidden until approved"""
    return storage.create_testimonial(testimonial)

@router.put("/{testimonial_id}/approve", response_model=Testimonial)
def approve_testimonial(
    testimonial_id: int,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    approved = storage.approve_testimonial(testimonial_id)
    if not approved:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Testimonial not found"
        )
    return approved
