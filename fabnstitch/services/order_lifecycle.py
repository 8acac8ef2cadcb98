"""
Order lifecycle: status transitions, status history and order creation.

Every status change goes through this module so that an order's ``status``
column and its ``order_status_history`` rows are written in one transaction.
Callers (the route layer) pass an already authenticated :class:`Actor`.
"""
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fabnstitch.errors import (
    ConflictError,
    ForbiddenError,
    IllegalTransitionError,
    InvalidInputError,
    NotFoundError,
    OrderNotFoundError,
    PersistenceError,
)
from fabnstitch.models.fabric import Fabric
from fabnstitch.models.measurement import Measurement, MEASUREMENT_FIELDS
from fabnstitch.models.order import Order, OrderStatus, OrderStatusHistory
from fabnstitch.models.user import User, UserRole
from fabnstitch.schemas.order import (
    OrderCreate,
    PublicTimelineEntry,
    TimelineEntry,
    TrackedOrder,
    TrackingResponse,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Transition policy
# ============================================================================

STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.STITCHING,
    OrderStatus.FINISHING,
    OrderStatus.QUALITY_CHECK,
    OrderStatus.READY,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Workshop stages a tailor moves an order through, one step at a time.
TAILOR_STAGES = [
    OrderStatus.CONFIRMED,
    OrderStatus.STITCHING,
    OrderStatus.FINISHING,
    OrderStatus.QUALITY_CHECK,
    OrderStatus.READY,
]


def _adjacency(stages: List[OrderStatus]) -> Dict[OrderStatus, Set[OrderStatus]]:
    table = {}
    for i, stage in enumerate(stages):
        neighbours = set()
        if i > 0:
            neighbours.add(stages[i - 1])
        if i < len(stages) - 1:
            neighbours.add(stages[i + 1])
        table[stage] = neighbours
    return table


TAILOR_TRANSITIONS = _adjacency(TAILOR_STAGES)

CREATION_NOTE = "Order created by admin"
ASSIGNMENT_NOTE = "Order confirmed and assigned to tailor"
MIGRATION_NOTE = "Initial status (migrated)"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a lifecycle operation."""
    id: int
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, role=user.role)


def allowed_transitions(current: OrderStatus, role: UserRole) -> Set[OrderStatus]:
    """Statuses ``role`` may move an order to from ``current``."""
    if role == UserRole.ADMIN:
        return {s for s in OrderStatus if s != current}
    if role == UserRole.TAILOR:
        return set(TAILOR_TRANSITIONS.get(current, set()))
    return set()


def transition_table(role: UserRole) -> Dict[str, List[OrderStatus]]:
    """The whole policy for one role, in status order, for clients to render."""
    order = list(OrderStatus)
    return {
        status.value: sorted(allowed_transitions(status, role), key=order.index)
        for status in OrderStatus
    }


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidInputError(f"Invalid status '{value}'")


def generate_order_id() -> str:
    """Human-readable order token; the random suffix keeps same-millisecond ids apart."""
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


# ============================================================================
# Lookups
# ============================================================================

def find_order(db: Session, order_ref: Union[int, str]) -> Order:
    """Resolve an internal id (int) or an order_id token (str)."""
    if isinstance(order_ref, int):
        order = db.query(Order).filter(Order.id == order_ref).first()
    else:
        order = db.query(Order).filter(Order.order_id == order_ref).first()
    if not order:
        raise OrderNotFoundError(order_ref)
    return order


def _get_user_with_role(db: Session, user_id: int, role: UserRole, label: str) -> User:
    user = db.query(User).filter(User.id == user_id, User.role == role).first()
    if not user:
        raise NotFoundError(label)
    return user


def _require_admin(actor: Actor, operation: str):
    if actor.role != UserRole.ADMIN:
        raise ForbiddenError(f"Only admins can {operation}")


def _history_entry(order: Order, status: OrderStatus, actor_id: Optional[int], note: Optional[str]):
    return OrderStatusHistory(order_id=order.id, status=status, notes=note, updated_by=actor_id)


def _compare_and_set_status(db: Session, order: Order, expected: OrderStatus, target: OrderStatus):
    """Update the status only if nobody changed it since we read it."""
    updated = db.query(Order).filter(
        Order.id == order.id,
        Order.status == expected,
    ).update({Order.status: target}, synchronize_session="evaluate")
    if updated != 1:
        raise ConflictError(f"Order {order.order_id} was modified concurrently, reload and retry")


def _commit(db: Session, operation: str):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Rolled back %s", operation)
        raise PersistenceError(operation)


# ============================================================================
# Operations
# ============================================================================

def transition(
    db: Session,
    order_ref: Union[int, str],
    target: Union[str, OrderStatus],
    actor: Actor,
    note: Optional[str] = None,
) -> Order:
    """
    Move an order to ``target`` and append the matching history entry.

    Raises OrderNotFoundError, ForbiddenError, InvalidInputError,
    IllegalTransitionError (same status or outside the role's policy),
    ConflictError (lost a race) or PersistenceError. Nothing is written
    unless everything is.
    """
    target = parse_status(target)
    if actor.role == UserRole.CUSTOMER:
        raise ForbiddenError("Customers cannot change order status")

    order = find_order(db, order_ref)
    if actor.role == UserRole.TAILOR and order.tailor_id != actor.id:
        raise ForbiddenError("Order is not assigned to you")

    current = order.status
    if target not in allowed_transitions(current, actor.role):
        raise IllegalTransitionError(current, target, actor.role)

    try:
        _compare_and_set_status(db, order, current, target)
        db.add(_history_entry(order, target, actor.id, note or f"Status updated to {target.value}"))
    except ConflictError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Status update failed for order %s", order.order_id)
        raise PersistenceError("status update")
    _commit(db, "status update")

    db.refresh(order)
    logger.info(
        "Order %s: %s -> %s by %s #%s", order.order_id, current.value, target.value, actor.role.value, actor.id
    )
    return order


def upsert_measurements(db: Session, user_id: int, values: Dict[str, Optional[float]]) -> Measurement:
    """Insert the user's measurement row or update the given fields. Does not commit."""
    measurement = db.query(Measurement).filter(Measurement.user_id == user_id).first()
    if measurement is None:
        measurement = Measurement(user_id=user_id)
        db.add(measurement)
    for field in MEASUREMENT_FIELDS:
        value = values.get(field)
        if value is not None:
            setattr(measurement, field, value)
    return measurement


def create_order(db: Session, actor: Actor, data: OrderCreate) -> Order:
    """Create a pending order, its first history entry and the customer's measurements."""
    _require_admin(actor, "create orders")
    customer = _get_user_with_role(db, data.customer_id, UserRole.CUSTOMER, "Customer")

    fabric = None
    if data.fabric_id is not None:
        fabric = db.query(Fabric).filter(Fabric.id == data.fabric_id).first()
        if not fabric:
            raise NotFoundError("Fabric")
    elif not data.fabric_name:
        raise InvalidInputError("A fabric name or fabric_id is required")

    order = Order(
        order_id=generate_order_id(),
        user_id=customer.id,
        fabric_id=fabric.id if fabric else None,
        fabric_name=data.fabric_name,
        fabric_color=data.fabric_color,
        style=data.style,
        status=OrderStatus.PENDING,
        price=data.price,
        delivery_address=data.delivery_address or customer.address,
        estimated_delivery=data.estimated_delivery,
        notes=data.notes,
    )
    try:
        db.add(order)
        db.flush()  # Get the ID
        db.add(_history_entry(order, OrderStatus.PENDING, actor.id, CREATION_NOTE))
        upsert_measurements(db, customer.id, data.model_dump(include=set(MEASUREMENT_FIELDS)))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Order creation failed for customer #%s", customer.id)
        raise PersistenceError("order creation")
    _commit(db, "order creation")

    db.refresh(order)
    logger.info("Created order %s for customer #%s", order.order_id, customer.id)
    return order


def assign_tailor(db: Session, actor: Actor, order_ref: Union[int, str], tailor_id: int) -> Order:
    """
    Assign a tailor. A pending order is confirmed by the assignment and that
    status change is logged; reassigning a later-stage order only changes
    ``tailor_id``.
    """
    _require_admin(actor, "assign tailors")
    order = find_order(db, order_ref)
    tailor = _get_user_with_role(db, tailor_id, UserRole.TAILOR, "Tailor")

    confirmed = False
    try:
        order.tailor_id = tailor.id
        if order.status == OrderStatus.PENDING:
            _compare_and_set_status(db, order, OrderStatus.PENDING, OrderStatus.CONFIRMED)
            db.add(_history_entry(order, OrderStatus.CONFIRMED, actor.id, ASSIGNMENT_NOTE))
            confirmed = True
    except ConflictError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Tailor assignment failed for order %s", order.order_id)
        raise PersistenceError("tailor assignment")
    _commit(db, "tailor assignment")

    db.refresh(order)
    logger.info(
        "Order %s assigned to tailor #%s%s", order.order_id, tailor.id, " (confirmed)" if confirmed else ""
    )
    return order


def get_timeline(db: Session, order_pk: int) -> List[TimelineEntry]:
    """Status history of one order, oldest first. Empty for orders without history."""
    rows = (
        db.query(OrderStatusHistory, User.name)
        .outerjoin(User, OrderStatusHistory.updated_by == User.id)
        .filter(OrderStatusHistory.order_id == order_pk)
        .order_by(OrderStatusHistory.created_at.asc(), OrderStatusHistory.id.asc())
        .all()
    )
    return [
        TimelineEntry(
            status=entry.status,
            notes=entry.notes,
            date=entry.created_at,
            updated_by_name=name,
        )
        for entry, name in rows
    ]


def track_order(db: Session, token: str) -> TrackingResponse:
    """Public tracking by order_id token."""
    order = db.query(Order).filter(Order.order_id == token).first()
    if not order:
        raise OrderNotFoundError(token)

    return TrackingResponse(
        order=TrackedOrder(
            order_id=order.order_id,
            style=order.style,
            status=order.status,
            fabric_name=order.display_fabric_name,
            fabric_color=order.display_fabric_color,
            estimated_delivery=order.estimated_delivery,
            created_at=order.created_at,
        ),
        history=[
            PublicTimelineEntry(status=entry.status, notes=entry.notes, date=entry.date)
            for entry in get_timeline(db, order.id)
        ],
    )


def backfill_missing_history(db: Session) -> int:
    """
    Give every order without history one entry for its current status,
    stamped with the order's creation time. Returns the number repaired.
    """
    orders = (
        db.query(Order)
        .filter(~Order.history.any())
        .order_by(Order.id)
        .all()
    )
    if not orders:
        return 0

    admin = db.query(User).filter(User.role == UserRole.ADMIN).order_by(User.id).first()
    for order in orders:
        entry = _history_entry(order, order.status, admin.id if admin else None, MIGRATION_NOTE)
        if order.created_at is not None:
            entry.created_at = order.created_at
        db.add(entry)
        logger.info("Backfilled history for order %s (%s)", order.order_id, order.status.value)
    _commit(db, "history backfill")
    return len(orders)
