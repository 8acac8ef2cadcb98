"""User schemas for request/response validation."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from fabnstitch.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)


class UserCreate(UserBase):
    """Schema for registering or creating a user."""
    password: str = Field(..., min_length=6)


class RegisterRequest(UserCreate):
    """Public registration; phone is mandatory there."""
    phone: str = Field(..., min_length=1, max_length=30)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=30)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)


class UserResponse(UserBase):
    """Schema for user response."""
    id: int
    role: UserRole
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TailorSummary(UserResponse):
    """Tailor row on the admin list, with workload."""
    total_orders: int = 0


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Token plus the user it was issued for."""
    message: str
    token: str
    token_type: str = "bearer"
    user: UserResponse


class PasswordChange(BaseModel):
    """Schema for changing password."""
    current_password: str
    new_password: str = Field(..., min_length=6)
