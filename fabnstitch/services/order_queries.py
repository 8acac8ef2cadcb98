"""Read helpers shared by the customer, tailor and admin portals."""
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from fabnstitch.models.measurement import Measurement, MEASUREMENT_FIELDS
from fabnstitch.models.order import Order, OrderStatus
from fabnstitch.schemas.measurement import MeasurementValues
from fabnstitch.schemas.order import OrderDetail, OrderSummary
from fabnstitch.services.order_lifecycle import STATUS_FLOW, get_timeline

# Workshop queue order: earliest stage first, unfinished before finished.
_STAGE_RANK = case(
    {status.value: rank for rank, status in enumerate(STATUS_FLOW)},
    value=Order.status,
    else_=len(STATUS_FLOW),
)


def order_summary(order: Order) -> OrderSummary:
    return OrderSummary(
        order_id=order.order_id,
        style=order.style,
        status=order.status,
        price=order.price,
        fabric_name=order.display_fabric_name,
        fabric_color=order.display_fabric_color,
        customer_name=order.customer.name if order.customer else None,
        tailor_id=order.tailor_id,
        tailor_name=order.tailor.name if order.tailor else None,
        estimated_delivery=order.estimated_delivery,
        created_at=order.created_at,
    )


def order_detail(db: Session, order: Order, include_customer_contact: bool = True) -> OrderDetail:
    """Order with the customer's measurements and the full timeline."""
    measurement = db.query(Measurement).filter(Measurement.user_id == order.user_id).first()
    measurements = None
    if measurement:
        measurements = MeasurementValues(**{f: getattr(measurement, f) for f in MEASUREMENT_FIELDS})

    summary = order_summary(order).model_dump()
    return OrderDetail(
        **summary,
        delivery_address=order.delivery_address,
        notes=order.notes,
        customer_phone=order.customer.phone if include_customer_contact and order.customer else None,
        customer_email=order.customer.email if include_customer_contact and order.customer else None,
        tailor_phone=order.tailor.phone if order.tailor else None,
        measurements=measurements,
        history=get_timeline(db, order.id),
    )


def list_orders(
    db: Session,
    customer_id: Optional[int] = None,
    tailor_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
    workshop_order: bool = False,
    limit: Optional[int] = None,
    exclude: Optional[List[OrderStatus]] = None,
) -> List[Order]:
    """Orders filtered by owner/assignee/status, newest first unless ``workshop_order``."""
    query = db.query(Order).options(
        joinedload(Order.customer), joinedload(Order.tailor), joinedload(Order.fabric)
    )
    if customer_id is not None:
        query = query.filter(Order.user_id == customer_id)
    if tailor_id is not None:
        query = query.filter(Order.tailor_id == tailor_id)
    if status is not None:
        query = query.filter(Order.status == status)
    if exclude:
        query = query.filter(Order.status.notin_(exclude))

    if workshop_order:
        query = query.order_by(_STAGE_RANK, Order.estimated_delivery.asc(), Order.id.asc())
    else:
        query = query.order_by(Order.created_at.desc(), Order.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def status_counts(db: Session, **filters) -> Dict[str, int]:
    """Number of orders per status (every status present, zero if none)."""
    query = db.query(Order.status, func.count(Order.id))
    for column, value in filters.items():
        query = query.filter(getattr(Order, column) == value)
    counts = {status.value: 0 for status in OrderStatus}
    for status, count in query.group_by(Order.status).all():
        counts[OrderStatus(status).value] = count
    return counts
