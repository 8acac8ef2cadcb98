"""Customer body measurements, one row per user."""
from sqlalchemy import Column, Integer, Float, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fabnstitch.database import Base

MEASUREMENT_FIELDS = ("chest", "waist", "shoulders", "arm_length", "jacket_length", "neck")


class Measurement(Base):
    """Measurements in inches, updated each time an order is placed."""
    __tablename__ = "measurements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    chest = Column(Float, nullable=True)
    waist = Column(Float, nullable=True)
    shoulders = Column(Float, nullable=True)
    arm_length = Column(Float, nullable=True)
    jacket_length = Column(Float, nullable=True)
    neck = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="measurement")
