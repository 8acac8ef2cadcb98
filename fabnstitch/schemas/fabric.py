"""Fabric schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class FabricBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    material: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    price: Optional[float] = Field(None, ge=0)
    stock: int = Field(default=0, ge=0)
    image_url: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class FabricCreate(FabricBase):
    pass


class FabricResponse(FabricBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
