"""Admin portal routes."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from fabnstitch.auth import get_password_hash, require_admin
from fabnstitch.database import get_db
from fabnstitch.models.lead import Lead
from fabnstitch.models.order import Order, OrderStatus
from fabnstitch.models.ticket import Ticket, TicketStatus
from fabnstitch.models.user import User, UserRole
from fabnstitch.schemas.lead import LeadResponse, LeadUpdate
from fabnstitch.schemas.order import (
    AssignTailor, MessageResponse, OrderCreate, OrderCreated, OrderDetail,
    OrderSummary, StatusUpdate, TransitionResponse
)
from fabnstitch.schemas.ticket import AdminTicketResponse, TicketUpdate
from fabnstitch.schemas.user import TailorSummary, UserCreate, UserResponse
from fabnstitch.services import order_lifecycle
from fabnstitch.services.order_lifecycle import Actor
from fabnstitch.services.order_queries import list_orders, order_detail, order_summary, status_counts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Headline counts for the admin home page."""
    customers = db.query(User).filter(User.role == UserRole.CUSTOMER).count()
    tailors = db.query(User).filter(User.role == UserRole.TAILOR).count()
    open_tickets = db.query(Ticket).filter(Ticket.status == TicketStatus.OPEN.value).count()
    revenue = db.query(func.coalesce(func.sum(Order.price), 0)).filter(
        Order.status != OrderStatus.CANCELLED
    ).scalar()
    counts = status_counts(db)

    return {
        "customers": customers,
        "tailors": tailors,
        "orders": sum(counts.values()),
        "open_tickets": open_tickets,
        "order_stats": {**counts, "total_revenue": float(revenue or 0)},
    }


# ============================================================================
# Users
# ============================================================================

@router.get("/customers", response_model=List[UserResponse])
async def list_customers(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return db.query(User).filter(User.role == UserRole.CUSTOMER).order_by(
        User.created_at.desc(), User.id.desc()
    ).all()


@router.get("/tailors", response_model=List[TailorSummary])
async def list_tailors(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Tailors with the number of orders assigned to each."""
    rows = (
        db.query(User, func.count(Order.id))
        .outerjoin(Order, Order.tailor_id == User.id)
        .filter(User.role == UserRole.TAILOR)
        .group_by(User.id)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return [
        TailorSummary(**UserResponse.model_validate(tailor).model_dump(), total_orders=total)
        for tailor, total in rows
    ]


def _create_user(db: Session, data: UserCreate, role: UserRole) -> User:
    existing = db.query(User).filter(User.email == data.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )
    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        name=data.name,
        phone=data.phone,
        address=data.address,
        city=data.city,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin created %s #%s", role.value, user.id)
    return user


@router.post("/create-customer", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _create_user(db, user_data, UserRole.CUSTOMER)


@router.post("/create-tailor", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_tailor(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _create_user(db, user_data, UserRole.TAILOR)


# ============================================================================
# Orders
# ============================================================================

@router.get("/orders", response_model=List[OrderSummary])
async def get_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return [order_summary(o) for o in list_orders(db, status=status_filter)]


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return order_detail(db, order_lifecycle.find_order(db, order_id))


@router.post("/create-order", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create an order for a customer and record their measurements."""
    order = order_lifecycle.create_order(db, Actor.from_user(current_user), order_data)
    return OrderCreated(message="Order created successfully", order_id=order.order_id)


@router.put("/orders/{order_id}/assign-tailor", response_model=MessageResponse)
async def assign_tailor(
    order_id: str,
    assignment: AssignTailor,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    order_lifecycle.assign_tailor(db, Actor.from_user(current_user), order_id, assignment.tailor_id)
    return MessageResponse(message="Tailor assigned successfully")


@router.put("/orders/{order_id}/status", response_model=TransitionResponse)
async def update_status(
    order_id: str,
    update: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Set any status other than the current one."""
    order = order_lifecycle.transition(db, order_id, update.status, Actor.from_user(current_user), update.notes)
    return TransitionResponse(message="Status updated successfully", order=order_summary(order))


# ============================================================================
# Tickets and leads
# ============================================================================

@router.get("/tickets", response_model=List[AdminTicketResponse])
async def list_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    query = db.query(Ticket, User.name, User.email).outerjoin(User, Ticket.user_id == User.id)
    if status_filter:
        query = query.filter(Ticket.status == status_filter.value)
    rows = query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()
    return [
        AdminTicketResponse(
            id=ticket.id,
            user_id=ticket.user_id,
            subject=ticket.subject,
            message=ticket.message,
            status=ticket.status,
            priority=ticket.priority,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            user_name=name,
            user_email=email,
        )
        for ticket, name, email in rows
    ]


@router.put("/tickets/{ticket_id}", response_model=MessageResponse)
async def update_ticket(
    ticket_id: int,
    ticket_update: TicketUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found"
        )
    ticket.status = ticket_update.status.value
    db.commit()
    return MessageResponse(message="Ticket updated successfully")


@router.get("/leads", response_model=List[LeadResponse])
async def list_leads(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return db.query(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()).all()


@router.put("/leads/{lead_id}", response_model=MessageResponse)
async def update_lead(
    lead_id: int,
    lead_update: LeadUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if not lead:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lead not found"
        )
    lead.status = lead_update.status.value
    lead.notes = lead_update.notes
    db.commit()
    return MessageResponse(message="Lead updated successfully")
