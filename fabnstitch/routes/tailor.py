"""Tailor portal routes."""
from datetime import datetime, time, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fabnstitch.auth import require_tailor
from fabnstitch.database import get_db
from fabnstitch.errors import OrderNotFoundError
from fabnstitch.models.order import Order, OrderStatus, OrderStatusHistory
from fabnstitch.models.user import User
from fabnstitch.schemas.order import OrderDetail, OrderSummary, StatusUpdate, TransitionResponse
from fabnstitch.schemas.user import UserResponse
from fabnstitch.services.order_lifecycle import Actor, transition
from fabnstitch.services.order_queries import list_orders, order_detail, order_summary, status_counts

router = APIRouter(prefix="/tailor", tags=["Tailor"])


def _get_assigned_order(db: Session, order_id: str, tailor: User) -> Order:
    order = db.query(Order).filter(
        Order.order_id == order_id,
        Order.tailor_id == tailor.id
    ).first()
    if not order:
        raise OrderNotFoundError(order_id)
    return order


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tailor)
):
    """Workload per stage, the next orders in the queue and today's update count."""
    counts = status_counts(db, tailor_id=current_user.id)
    start_of_day = datetime.combine(datetime.now(timezone.utc).date(), time.min)
    today_updates = db.query(OrderStatusHistory).filter(
        OrderStatusHistory.updated_by == current_user.id,
        OrderStatusHistory.created_at >= start_of_day
    ).count()

    queue = list_orders(
        db,
        tailor_id=current_user.id,
        workshop_order=True,
        limit=10,
        exclude=[OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    )
    return {
        "tailor": UserResponse.model_validate(current_user),
        "stats": {"total_orders": sum(counts.values()), **counts, "today_updates": today_updates},
        "pending_orders": [order_summary(o) for o in queue],
    }


@router.get("/orders", response_model=List[OrderSummary])
async def get_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tailor)
):
    """Assigned orders in workshop order (earliest stage, then due date)."""
    orders = list_orders(db, tailor_id=current_user.id, status=status_filter, workshop_order=True)
    return [order_summary(o) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tailor)
):
    return order_detail(db, _get_assigned_order(db, order_id, current_user))


@router.put("/orders/{order_id}/status", response_model=TransitionResponse)
async def update_status(
    order_id: str,
    update: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tailor)
):
    """Move an assigned order one stage forward or back."""
    order = _get_assigned_order(db, order_id, current_user)
    order = transition(db, order.id, update.status, Actor.from_user(current_user), update.notes)
    return TransitionResponse(message="Order status updated successfully", order=order_summary(order))


@router.get("/profile")
async def get_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tailor)
):
    completed = db.query(Order).filter(
        Order.tailor_id == current_user.id,
        Order.status == OrderStatus.DELIVERED
    ).count()
    return {
        "tailor": UserResponse.model_validate(current_user),
        "stats": {"total_completed": completed},
    }
