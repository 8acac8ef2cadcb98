"""Lead schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from fabnstitch.models.lead import LeadStatus


class LeadCreate(BaseModel):
    """Public Get Started form."""
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)
    email: Optional[EmailStr] = None
    company: Optional[str] = Field(None, max_length=100)
    need: str = Field(..., min_length=1, max_length=100)


class LeadUpdate(BaseModel):
    status: LeadStatus
    notes: Optional[str] = None


class LeadResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: str
    company: Optional[str] = None
    need: Optional[str] = None
    status: LeadStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
