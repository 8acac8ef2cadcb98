"""Order and order status history models."""
from datetime import datetime, timezone
import enum

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Float, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fabnstitch.database import Base


class OrderStatus(str, enum.Enum):
    """Order status enum, in production order."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    STITCHING = "stitching"
    FINISHING = "finishing"
    QUALITY_CHECK = "quality_check"
    READY = "ready"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def _status_column_type():
    # Store "pending", not "PENDING"
    return Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e])


def _utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    """Order model - one manufacturing job for a customer."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(40), unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tailor_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Fabric either from the catalogue or typed in by the admin
    fabric_id = Column(Integer, ForeignKey("fabrics.id"), nullable=True)
    fabric_name = Column(String(100), nullable=True)
    fabric_color = Column(String(50), nullable=True)

    style = Column(String(100), nullable=True)
    status = Column(_status_column_type(), default=OrderStatus.PENDING, nullable=False)
    price = Column(Float, nullable=True)
    delivery_address = Column(Text, nullable=True)
    estimated_delivery = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=_utcnow)

    # Relationships
    customer = relationship("User", foreign_keys=[user_id], back_populates="orders")
    tailor = relationship("User", foreign_keys=[tailor_id], back_populates="assigned_orders")
    fabric = relationship("Fabric")
    history = relationship("OrderStatusHistory", back_populates="order")

    @property
    def display_fabric_name(self):
        return self.fabric.name if self.fabric else self.fabric_name

    @property
    def display_fabric_color(self):
        return self.fabric.color if self.fabric else self.fabric_color


class OrderStatusHistory(Base):
    """
    Append-only log of every status an order has held.

    Rows are never updated or deleted; read in (created_at, id) order they
    form the order's timeline.
    """
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(_status_column_type(), nullable=False)
    notes = Column(Text, nullable=True)

    # Who performed the change (user_id)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="history")
    actor = relationship("User")
