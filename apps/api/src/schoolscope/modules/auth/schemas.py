"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Sign-up request schema."""

    email: EmailStr
    # bcrypt only uses the first 72 bytes
    password: str = Field(..., min_length=8, max_length=72)
    name: str | None = Field(None, max_length=200)


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None = None
    is_admin: bool
    created_at: datetime


class SessionResponse(BaseModel):
    """Response for register and login."""

    user: UserResponse
    session_token: str


class LogoutResponse(BaseModel):
    success: bool = True


class AdminCheckResponse(BaseModel):
    is_admin: bool
