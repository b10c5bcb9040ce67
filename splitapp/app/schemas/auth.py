"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional


class UserRegister(BaseModel):
    """
    Schema for user registration.
    
    Used by POST /auth/register. Re-submitting for an unverified email
    replaces the pending registration.
    """
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    email: EmailStr = Field(..., description="User email address")
    phone: Optional[str] = Field(default=None, max_length=32, description="Phone number")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    
    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Username must be at least 3 characters")
        return value


class VerifyOTPRequest(BaseModel):
    """Used by POST /auth/verify."""
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=12)


class UserLogin(BaseModel):
    """Used by POST /auth/login."""
    email: EmailStr
    password: str


class UserPublic(BaseModel):
    id: int
    username: str
    email: str
    
    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Returned by verify and login."""
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserPublic


class RegisterResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    """Used by GET /auth/me."""
    id: int
    username: str
    email: str
    phone: Optional[str] = None
    is_verified: bool
    created_at: datetime
    
    class Config:
        from_attributes = True
