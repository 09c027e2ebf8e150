from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional, Sequence

import jwt
from passlib.context import CryptContext

from museumtix.config import Settings, get_settings


@lru_cache()
def _crypt_context(schemes: Sequence[str]) -> CryptContext:
    return CryptContext(schemes=list(schemes), deprecated="auto")


def get_password_context(settings: Optional[Settings] = None) -> CryptContext:
    """Password hashing context for the given settings (process settings by default)"""
    settings = settings or get_settings()
    return _crypt_context(tuple(settings.PASSWORD_SCHEMES))


def verify_password(plain_password: str, hashed_password: str, settings: Optional[Settings] = None) -> bool:
    """Verify a password against its hash"""
    try:
        return get_password_context(settings).verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised hash format
        return False


def get_password_hash(password: str, settings: Optional[Settings] = None) -> str:
    """Hash a password"""
    return get_password_context(settings).hash(password)


def create_access_token(
    data: dict,
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token"""
    settings = settings or get_settings()
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Optional[dict]:
    """Return the token claims, or None if the token is invalid or expired"""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None
    
    if payload.get("sub") is None or payload.get("sid") is None:
        return None
    return payload
