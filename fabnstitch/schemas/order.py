"""Order schemas."""
from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from fabnstitch.models.order import OrderStatus
from fabnstitch.schemas.measurement import MeasurementValues


class OrderCreate(MeasurementValues):
    """Admin order form: the order plus the customer's current measurements."""
    customer_id: int
    style: str = Field(..., min_length=1, max_length=100)
    fabric_id: Optional[int] = None
    fabric_name: Optional[str] = Field(None, max_length=100)
    fabric_color: Optional[str] = Field(None, max_length=50)
    price: float = Field(..., gt=0)
    delivery_address: Optional[str] = None
    estimated_delivery: Optional[date] = None
    notes: Optional[str] = None


class OrderCreated(BaseModel):
    message: str
    order_id: str


class StatusUpdate(BaseModel):
    """Schema for a status change request."""
    status: OrderStatus
    notes: Optional[str] = None


class AssignTailor(BaseModel):
    tailor_id: int


class MessageResponse(BaseModel):
    message: str


class PublicTimelineEntry(BaseModel):
    """Status history row as shown on the public tracking page."""
    status: OrderStatus
    notes: Optional[str] = None
    date: datetime


class TimelineEntry(PublicTimelineEntry):
    """One row of an order's status history, with who made the change."""
    updated_by_name: Optional[str] = None


class OrderSummary(BaseModel):
    """Summary schema for order lists."""
    order_id: str
    style: Optional[str] = None
    status: OrderStatus
    price: Optional[float] = None
    fabric_name: Optional[str] = None
    fabric_color: Optional[str] = None
    customer_name: Optional[str] = None
    tailor_id: Optional[int] = None
    tailor_name: Optional[str] = None
    estimated_delivery: Optional[date] = None
    created_at: Optional[datetime] = None


class OrderDetail(OrderSummary):
    """Full order with measurements and timeline."""
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    tailor_phone: Optional[str] = None
    measurements: Optional[MeasurementValues] = None
    history: List[TimelineEntry] = []


class TransitionResponse(BaseModel):
    message: str
    order: OrderSummary


class TrackedOrder(BaseModel):
    """Public view of an order: no internal ids, pricing or customer data."""
    order_id: str
    style: Optional[str] = None
    status: OrderStatus
    fabric_name: Optional[str] = None
    fabric_color: Optional[str] = None
    estimated_delivery: Optional[date] = None
    created_at: Optional[datetime] = None


class TrackingResponse(BaseModel):
    order: TrackedOrder
    history: List[PublicTimelineEntry] = []


class StatusPolicy(BaseModel):
    """Statuses and the moves the caller's role may make from each."""
    statuses: List[OrderStatus]
    transitions: Dict[str, List[OrderStatus]]
