import logging
from datetime import timedelta
from typing import Optional

from museumtix.auth.schemas import AdminUserCreate, RegisterRequest
from museumtix.auth.utils import create_access_token, get_password_hash, verify_password
from museumtix.config import Settings
from museumtix.schemas import User, UserCreate
from museumtix.storage.interfaces import IStorage

logger = logging.getLogger(__name__)


class AuthService:
    @staticmethod
    def register_user(storage: IStorage, data: RegisterRequest, settings: Optional[Settings] = None) -> User:
        """Create a regular (non-admin) user. Raises DuplicateUserError."""
        return AuthService.create_user(storage, data, is_admin=False, settings=settings)
    
    @staticmethod
    def create_user(
        storage: IStorage,
        data: RegisterRequest,
        is_admin: bool = False,
        settings: Optional[Settings] = None
    ) -> User:
        """Hash the password and insert the user"""
        user = UserCreate(
            username=data.username,
            password=get_password_hash(data.password, settings),
            email=data.email,
            full_name=data.full_name,
            language_preference=data.language_preference,
            is_admin=is_admin
        )
        created = storage.create_user(user)
        logger.info("Created user %s (admin=%s)", created.username, created.is_admin)
        return created
    
    @staticmethod
    def create_user_as_admin(storage: IStorage, data: AdminUserCreate, settings: Optional[Settings] = None) -> User:
        return AuthService.create_user(storage, data, is_admin=data.is_admin, settings=settings)
    
    @staticmethod
    def authenticate_user(
        storage: IStorage,
        username: str,
        password: str,
        settings: Optional[Settings] = None
    ) -> Optional[User]:
        """Authenticate user with username and password"""
        user = storage.get_user_by_username(username)
        if not user:
            return None
        if not verify_password(password, user.password, settings):
            return None
        return user
    
    @staticmethod
    def start_session(storage: IStorage, user: User, settings: Settings) -> str:
        """Open a server-side session and return a token bound to it"""
        sid = storage.session_store.create(user.id, settings.SESSION_TTL_SECONDS)
        return create_access_token(
            data={"sub": str(user.id), "sid": sid},
            settings=settings,
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
    
    @staticmethod
    def end_session(storage: IStorage, sid: str) -> bool:
        return storage.session_store.destroy(sid)
