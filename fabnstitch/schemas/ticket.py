"""Support ticket schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from fabnstitch.models.ticket import TicketStatus, TicketPriority


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    priority: TicketPriority = TicketPriority.MEDIUM


class TicketUpdate(BaseModel):
    status: TicketStatus


class TicketResponse(BaseModel):
    id: int
    user_id: int
    subject: str
    message: str
    status: TicketStatus
    priority: TicketPriority
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminTicketResponse(TicketResponse):
    """Ticket with the raising user's contact details."""
    user_name: Optional[str] = None
    user_email: Optional[str] = None
