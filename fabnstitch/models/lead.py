"""Lead model - enquiries from the public Get Started form."""
import enum
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from fabnstitch.database import Base


class LeadStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    DROPPED = "dropped"


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=False)
    company = Column(String(100), nullable=True)
    need = Column(String(100), nullable=True)
    status = Column(String(20), default=LeadStatus.NEW.value, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
