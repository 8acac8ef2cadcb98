"""Fabric catalogue model."""
from sqlalchemy import Column, Integer, String, Text, Float, DateTime
from sqlalchemy.sql import func

from fabnstitch.database import Base


class Fabric(Base):
    """Fabric model - cloth a customer can pick for an order."""
    __tablename__ = "fabrics"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    material = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    price = Column(Float, nullable=True)
    stock = Column(Integer, default=0, nullable=False)
    image_url = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
