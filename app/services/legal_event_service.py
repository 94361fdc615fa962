"""
Legal event persistence and the reminder-window queries used by the scheduler.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models import LegalEvent

logger = logging.getLogger(__name__)

REMINDER_24H_LEAD = timedelta(hours=24)
REMINDER_24H_SPAN = timedelta(hours=1)
REMINDER_30MIN_LEAD = timedelta(minutes=30)
REMINDER_30MIN_SPAN = timedelta(minutes=10)


def reminder_window(now: datetime, lead: timedelta, span: timedelta) -> Tuple[datetime, datetime]:
    """Inclusive [now + lead, now + lead + span] range."""
    start = now + lead
    return start, start + span


def upsert_legal_event(
    db: Session,
    title: str,
    event_date: datetime,
    source_url: str,
    source: Optional[str] = None,
) -> LegalEvent:
    """Insert or update by source_url. A date change re-arms both reminders."""
    event = db.query(LegalEvent).filter(LegalEvent.source_url == source_url).first()
    if event is None:
        event = LegalEvent(title=title, event_date=event_date, source_url=source_url, source=source)
        db.add(event)
        logger.info("Created legal event %r at %s", title, event_date)
    else:
        if event.event_date != event_date:
            event.notified_24h = False
            event.notified_30min = False
        event.title = title
        event.event_date = event_date
        event.source = source
        logger.info("Updated legal event %r at %s", title, event_date)
    db.commit()
    db.refresh(event)
    return event


def list_upcoming(db: Session, now: datetime, limit: int = 100) -> List[LegalEvent]:
    return (
        db.query(LegalEvent)
        .filter(LegalEvent.event_date >= now)
        .order_by(LegalEvent.event_date)
        .limit(limit)
        .all()
    )


def events_pending_immediate(db: Session, limit: int) -> List[LegalEvent]:
    return (
        db.query(LegalEvent)
        .filter(LegalEvent.notified_immediate.is_(False))
        .order_by(LegalEvent.created_at, LegalEvent.event_date)
        .limit(limit)
        .all()
    )


def events_pending_24h(db: Session, now: datetime) -> List[LegalEvent]:
    start, end = reminder_window(now, REMINDER_24H_LEAD, REMINDER_24H_SPAN)
    return (
        db.query(LegalEvent)
        .filter(
            LegalEvent.notified_24h.is_(False),
            LegalEvent.event_date >= start,
            LegalEvent.event_date <= end,
        )
        .order_by(LegalEvent.event_date)
        .all()
    )


def events_pending_30min(db: Session, now: datetime) -> List[LegalEvent]:
    start, end = reminder_window(now, REMINDER_30MIN_LEAD, REMINDER_30MIN_SPAN)
    return (
        db.query(LegalEvent)
        .filter(
            LegalEvent.notified_30min.is_(False),
            LegalEvent.event_date >= start,
            LegalEvent.event_date <= end,
        )
        .order_by(LegalEvent.event_date)
        .all()
    )
