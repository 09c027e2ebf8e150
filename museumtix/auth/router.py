from fastapi import APIRouter, Depends, HTTPException, status

from museumtix.auth.dependencies import get_current_user, get_session_claims
from museumtix.auth.schemas import AuthResponse, LoginRequest, RegisterRequest
from museumtix.auth.service import AuthService
from museumtix.config import Settings
from museumtix.context import get_app_settings, get_storage
from museumtix.schemas import PublicUser, User
from museumtix.storage.interfaces import IStorage

router = APIRouter()

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(
    data: RegisterRequest,
    storage: IStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Register a new user and log them in"""
    # DuplicateUserError is mapped to 400 by the app's exception handler
    user = AuthService.register_user(storage, data, settings)
    access_token = AuthService.start_session(storage, user, settings)
    return AuthResponse(access_token=access_token, user=PublicUser(**user.dict()))

@router.post("/login", response_model=AuthResponse)
def login(
    login_data: LoginRequest,
    storage: IStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Login with username and password"""
    user = AuthService.authenticate_user(storage, login_data.username, login_data.password, settings)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    access_token = AuthService.start_session(storage, user, settings)
    return AuthResponse(access_token=access_token, user=PublicUser(**user.dict()))

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    claims: dict = Depends(get_session_claims),
    current_user: User = Depends(get_current_user),
    storage: IStorage = Depends(get_storage)
):
    """End the caller's session; the token stops working immediately"""
    AuthService.end_session(storage, claims["sid"])

@router.get("/user", response_model=PublicUser)
def read_current_user(current_user: User = Depends(get_current_user)):
    """Get current user profile"""
    return current_user
