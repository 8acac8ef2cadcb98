"""Public order tracking and the shared status policy."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fabnstitch.auth import get_current_user
from fabnstitch.database import get_db
from fabnstitch.models.order import OrderStatus
from fabnstitch.models.user import User
from fabnstitch.schemas.order import StatusPolicy, TrackingResponse
from fabnstitch.services.order_lifecycle import track_order, transition_table

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("/status-policy", response_model=StatusPolicy)
async def get_status_policy(current_user: User = Depends(get_current_user)):
    """Which status moves the caller's role may make, so the UI offers only those."""
    return StatusPolicy(statuses=list(OrderStatus), transitions=transition_table(current_user.role))


@router.get("/track/{order_id}", response_model=TrackingResponse)
async def track(order_id: str, db: Session = Depends(get_db)):
    """Public order tracking by order number."""
    return track_order(db, order_id)
