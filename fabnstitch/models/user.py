"""User model and role enumeration."""
import enum
from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from fabnstitch.database import Base


class UserRole(str, enum.Enum):
    """Roles share one table; the role decides what a user may do."""
    CUSTOMER = "customer"
    TAILOR = "tailor"
    ADMIN = "admin"


class User(Base):
    """User model for authentication and authorization."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.CUSTOMER,
        nullable=False,
    )
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    measurement = relationship(
        "Measurement", back_populates="user", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )
    orders = relationship("Order", back_populates="customer", foreign_keys="Order.user_id")
    assigned_orders = relationship("Order", back_populates="tailor", foreign_keys="Order.tailor_id")
    tickets = relationship("Ticket", back_populates="user")
