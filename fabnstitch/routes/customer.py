"""Customer portal routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fabnstitch.auth import require_customer
from fabnstitch.database import get_db
from fabnstitch.errors import OrderNotFoundError
from fabnstitch.models.measurement import Measurement
from fabnstitch.models.order import Order, OrderStatus
from fabnstitch.models.ticket import Ticket, TicketStatus
from fabnstitch.models.user import User
from fabnstitch.schemas.measurement import MeasurementResponse
from fabnstitch.schemas.order import OrderDetail, OrderSummary
from fabnstitch.schemas.ticket import TicketCreate, TicketResponse
from fabnstitch.schemas.user import ProfileUpdate, UserResponse
from fabnstitch.services.order_queries import list_orders, order_detail, order_summary, status_counts

router = APIRouter(prefix="/customer", tags=["Customer"])

ACTIVE_STATUSES = [
    OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.STITCHING,
    OrderStatus.FINISHING, OrderStatus.QUALITY_CHECK,
]
READY_STATUSES = [OrderStatus.READY, OrderStatus.SHIPPED]


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_customer)
):
    """Order counters, recent orders and whether measurements are on file."""
    counts = status_counts(db, user_id=current_user.id)
    open_tickets = db.query(Ticket).filter(
        Ticket.user_id == current_user.id,
        Ticket.status.in_([TicketStatus.OPEN.value, TicketStatus.IN_PROGRESS.value])
    ).count()
    has_measurements = db.query(Measurement).filter(Measurement.user_id == current_user.id).first() is not None

    return {
        "user": UserResponse.model_validate(current_user),
        "stats": {
            "total_orders": sum(counts.values()),
            "active_orders": sum(counts[s.value] for s in ACTIVE_STATUSES),
            "completed_orders": counts[OrderStatus.DELIVERED.value],
            "ready_orders": sum(counts[s.value] for s in READY_STATUSES),
            "open_tickets": open_tickets,
        },
        "recent_orders": [order_summary(o) for o in list_orders(db, customer_id=current_user.id, limit=5)],
        "has_measurements": has_measurements,
    }


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(require_customer)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_customer)
):
    """Update name, phone or address; omitted fields are kept."""
    for field, value in profile.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/measurements", response_model=Optional[MeasurementResponse])
async def get_measurements(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_customer)
):
    """The customer's measurements, or null if none were recorded yet."""
    return db.query(Measurement).filter(Measurement.user_id == current_user.id).first()


@router.get("/orders", response_model=List[OrderSummary])
async def get_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_customer)
):
    orders = list_orders(db, customer_id=current_user.id, status=status_filter)
    return [order_summary(o) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_customer)
):
    """One of the customer's own orders with its timeline."""
    order = db.query(Order).filter(
        Order.order_id == order_id,
        Order.user_id == current_user.id
    ).first()
    if not order:
        # Someone else's order looks exactly like a missing one
        raise OrderNotFoundError(order_id)
    return order_detail(db, order, include_customer_contact=False)


@router.get("/tickets", response_model=List[TicketResponse])
async def get_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_customer)
):
    return db.query(Ticket).filter(Ticket.user_id == current_user.id).order_by(
        Ticket.created_at.desc(), Ticket.id.desc()
    ).all()


@router.post("/tickets", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    ticket_data: TicketCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_customer)
):
    ticket = Ticket(
        user_id=current_user.id,
        subject=ticket_data.subject,
        message=ticket_data.message,
        priority=ticket_data.priority.value,
        status=TicketStatus.OPEN.value,
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    return ticket
