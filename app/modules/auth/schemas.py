from pydantic import BaseModel, EmailStr
from typing import Optional, List

from app.modules.profiles.schemas import UserProfile


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class Capabilities(BaseModel):
    is_admin: bool
    no_access_assigned: bool
    sections: List[str]
    actions: List[str]
    first_allowed_section: str


class SessionResponse(BaseModel):
    status: str
    profile: Optional[UserProfile] = None
    error: Optional[str] = None
    capabilities: Optional[Capabilities] = None


class LoginResponse(TokenResponse):
    session: SessionResponse
