from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from museumtix.auth.utils import decode_access_token
from museumtix.config import Settings
from museumtix.context import get_app_settings, get_storage
from museumtix.schemas import User
from museumtix.storage.interfaces import IStorage

# auto_error disabled so anonymous requests reach the handlers that allow them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def get_session_claims(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_app_settings)
) -> Optional[dict]:
    """Decoded token claims, or None for anonymous or malformed tokens"""
    if not token:
        return None
    return decode_access_token(token, settings)


def get_optional_user(
    claims: Optional[dict] = Depends(get_session_claims),
    storage: IStorage = Depends(get_storage)
) -> Optional[User]:
    """Resolve the caller if the token names a live session"""
    if claims is None:
        return None
    
    session = storage.session_store.get(claims["sid"])
    if session is None or str(session["user_id"]) != claims["sub"]:
        return None
    
    return storage.get_user(session["user_id"])


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Get current authenticated user"""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require admin role for access"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized"
        )
    return current_user
