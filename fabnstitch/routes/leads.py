"""Lead capture route (public)."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fabnstitch.database import get_db
from fabnstitch.models.lead import Lead, LeadStatus
from fabnstitch.schemas.lead import LeadCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_lead(data: LeadCreate, db: Session = Depends(get_db)):
    """Store a Get Started enquiry."""
    lead = Lead(**data.model_dump(), status=LeadStatus.NEW.value)
    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info("New lead #%s (%s)", lead.id, lead.need)
    return {"message": "Thank you! We'll contact you soon.", "lead_id": lead.id}
