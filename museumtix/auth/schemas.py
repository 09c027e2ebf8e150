from pydantic import EmailStr, Field
from typing import Optional

from museumtix.schemas import CamelModel, PublicUser


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    email: EmailStr
    full_name: Optional[str] = None
    language_preference: str = "en"

class AdminUserCreate(RegisterRequest):
    """User created from the admin console; may grant the admin flag"""
    is_admin: bool = False

class LoginRequest(CamelModel):
    username: str
    password: str

class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: PublicUser
