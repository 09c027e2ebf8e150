from fastapi import APIRouter, Depends, status
from typing import List

from museumtix.auth.dependencies import require_admin
from museumtix.auth.schemas import AdminUserCreate
from museumtix.auth.service import AuthService
from museumtix.config import Settings
from museumtix.context import get_app_settings, get_storage
from museumtix.schemas import PublicUser, User
from museumtix.storage.interfaces import IStorage

router = APIRouter()

@router.get("", response_model=List[PublicUser])
def get_users(admin: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    """List all users (admin only)"""
    return storage.get_all_users()

@router.post("", response_model=PublicUser, status_code=status.HTTP_201_CREATED)
def create_user(
    data: AdminUserCreate,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Create a user, optionally an administrator"""
    return AuthService.create_user_as_admin(storage, data, settings)
