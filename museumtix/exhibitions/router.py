from fastapi import APIRouter, Depends, HTTPException, Response, status
from typing import List

from museumtix.auth.dependencies import require_admin
from museumtix.context import get_storage
from museumtix.schemas import Exhibition, ExhibitionCreate, User
from museumtix.storage.interfaces import IStorage

router = APIRouter()

@router.get("", response_model=List[Exhibition])
def get_exhibitions(storage: IStorage = Depends(get_storage)):
    """List all exhibitions"""
    return storage.get_all_exhibitions()

@router.get("/featured", response_model=List[Exhibition])
def get_featured_exhibitions(storage: IStorage = Depends(get_storage)):
    """List featured exhibitions"""
    return storage.get_featured_exhibitions()

@router.get("/{exhibition_id}", response_model=Exhibition)
def get_exhibition(exhibition_id: int, storage: IStorage = Depends(get_storage)):
    """Get exhibition by ID"""
    exhibition = storage.get_exhibition(exhibition_id)
    if not exhibition:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Exhibition not found"
        )
    return exhibition

@router.post("", response_model=Exhibition, status_code=status.HTTP_201_CREATED)
def create_exhibition(
    exhibition: ExhibitionCreate,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    """Create a new exhibition (admin only)"""
    return storage.create_exhibition(exhibition)

@router.put("/{exhibition_id}", response_model=Exhibition)
def update_exhibition(
    exhibition_id: int,
    exhibition: ExhibitionCreate,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    """Replace an exhibition's fields (admin only)"""
    updated = storage.update_exhibition(exhibition_id, exhibition)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Exhibition not found"
        )
    return updated

@router.delete("/{exhibition_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exhibition(
    exhibition_id: int,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    """Delete an exhibition (admin only); tickets referencing it are kept"""
    if not storage.delete_exhibition(exhibition_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Exhibition not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
