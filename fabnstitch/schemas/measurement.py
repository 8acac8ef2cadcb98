"""Measurement schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class MeasurementValues(BaseModel):
    """Body measurements in inches."""
    chest: Optional[float] = Field(None, ge=0)
    waist: Optional[float] = Field(None, ge=0)
    shoulders: Optional[float] = Field(None, ge=0)
    arm_length: Optional[float] = Field(None, ge=0)
    jacket_length: Optional[float] = Field(None, ge=0)
    neck: Optional[float] = Field(None, ge=0)


class MeasurementResponse(MeasurementValues):
    id: int
    user_id: int
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
