"""Auth schemas for API validation"""

from pydantic import BaseModel, Field, EmailStr
from typing import Optional
from datetime import datetime


class LoginRequest(BaseModel):
    """Schema for admin login"""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class AdminInfo(BaseModel):
    """Admin info in auth responses"""
    id: int
    email: str
    name: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Schema for login response with admin info"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    admin: AdminInfo
