"""
Legal Events API Routes
"""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_scheduler
from app.database import get_db
from app.schemas.legal_event import LegalEventCreate, LegalEventSchema
from app.services import legal_event_service
from app.services.event_notification_scheduler import EventNotificationScheduler

router = APIRouter()


@router.get("/", response_model=List[LegalEventSchema])
async def list_upcoming_events(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Upcoming legal events, soonest first"""
    return legal_event_service.list_upcoming(db, datetime.utcnow(), limit)


@router.post("/", response_model=LegalEventSchema)
async def upsert_event(payload: LegalEventCreate, db: Session = Depends(get_db)):
    """Create or update an event keyed by its source URL"""
    return legal_event_service.upsert_legal_event(
        db,
        title=payload.title,
        event_date=payload.event_date,
        source_url=payload.source_url,
        source=payload.source,
    )


@router.post("/notify")
async def run_notifications_now(
    scheduler: EventNotificationScheduler = Depends(get_scheduler),
) -> dict:
    """Run one notification tick immediately"""
    summary = await scheduler.tick()
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A notification run is already in progress",
        )
    return {"success": True, "sent": summary}
