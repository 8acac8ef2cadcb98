"""Fabric catalogue routes."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fabnstitch.auth import require_admin
from fabnstitch.database import get_db
from fabnstitch.models.fabric import Fabric
from fabnstitch.models.user import User
from fabnstitch.schemas.fabric import FabricCreate, FabricResponse

router = APIRouter(prefix="/fabrics", tags=["Fabrics"])


@router.get("/", response_model=List[FabricResponse])
async def list_fabrics(db: Session = Depends(get_db)):
    return db.query(Fabric).order_by(Fabric.name).all()


@router.post("/", response_model=FabricResponse, status_code=status.HTTP_201_CREATED)
async def create_fabric(
    fabric_data: FabricCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    fabric = Fabric(**fabric_data.model_dump())
    db.add(fabric)
    db.commit()
    db.refresh(fabric)
    return fabric
