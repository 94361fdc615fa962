"""
Notifications API Routes
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.notification import NotificationSchema
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=List[NotificationSchema])
async def list_notifications(
    user_id: str = Query(alias="userId", min_length=1),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    db: Session = Depends(get_db),
):
    return NotificationService.list_for_user(db, user_id, unread_only=unread_only)


@router.post("/{notification_id}/read", response_model=NotificationSchema)
async def mark_notification_read(notification_id: str, db: Session = Depends(get_db)):
    notification = NotificationService.mark_read(db, notification_id)
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    return notification
