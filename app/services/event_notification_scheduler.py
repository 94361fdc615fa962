"""
In-process scheduler for legal event notifications.
Runs on a cron expression and marks per-event flags so each threshold is sent once.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List

from croniter import croniter
from sqlalchemy.orm import Session

from app.models import LegalEvent
from app.services import legal_event_service
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

KIND_NEW = "legal_event_new"
KIND_24H = "legal_event_24h"
KIND_30MIN = "legal_event_30min"


def _event_body(event: LegalEvent) -> str:
    return f"Date: {event.event_date:%Y-%m-%d %H:%M} UTC\nSource: {event.source_url}"


class EventNotificationScheduler:
    """Scans legal events on every tick and broadcasts new-event, 24h and 30min notices."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: NotificationService,
        cron: str = "*/10 * * * *",
        clock: Callable[[], datetime] = datetime.utcnow,
        immediate_batch_size: int = 10,
    ):
        if not croniter.is_valid(cron):
            raise ValueError(f"Invalid cron expression: {cron!r}")
        self.session_factory = session_factory
        self.notifier = notifier
        self.cron = cron
        self.clock = clock
        self.immediate_batch_size = immediate_batch_size
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._tick_running = False
        self.last_tick_at: datetime | None = None
        self.next_run_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start scheduler loop as background task."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("EventNotificationScheduler started (cron=%s)", self.cron)

    async def stop(self) -> None:
        """Stop scheduler loop and wait for completion."""
        self._stop_event.set()
        if self._task:
            await self._task
            self._task = None
        logger.info("EventNotificationScheduler stopped")

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            now = self.clock()
            self.next_run_at = self._compute_next_run(now)
            delay = max((self.next_run_at - now).total_seconds(), 0.0)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                break
            except asyncio.TimeoutError:
                pass
            try:
                await self.tick()
            except Exception as exc:
                logger.exception("EventNotificationScheduler tick failed: %s", exc)

    def _compute_next_run(self, from_dt: datetime) -> datetime:
        return croniter(self.cron, from_dt).get_next(datetime)

    async def tick(self) -> Dict[str, int] | None:
        """Run all three passes once. Returns event counts, or None if a tick was already in flight."""
        if self._tick_running:
            logger.warning("Previous notification tick still running; skipping")
            return None
        self._tick_running = True
        now = self.clock()
        try:
            summary = {
                "immediate": await self._run_pass(
                    "immediate",
                    lambda db: legal_event_service.events_pending_immediate(db, self.immediate_batch_size),
                    self._send_immediate,
                ),
                "reminder_24h": await self._run_pass(
                    "24h",
                    lambda db: legal_event_service.events_pending_24h(db, now),
                    self._send_24h,
                ),
                "reminder_30min": await self._run_pass(
                    "30min",
                    lambda db: legal_event_service.events_pending_30min(db, now),
                    self._send_30min,
                ),
            }
            self.last_tick_at = now
            logger.info("Notification tick complete: %s", summary)
            return summary
        finally:
            self._tick_running = False

    async def _run_pass(self, name: str, fetch, send) -> int:
        db = self.session_factory()
        sent = 0
        try:
            events: List[LegalEvent] = fetch(db)
            for event in events:
                event_id = event.id
                try:
                    await send(db, event)
                    db.commit()
                    sent += 1
                except Exception as exc:
                    db.rollback()
                    logger.exception("%s notification for event %s failed: %s", name, event_id, exc)
        except Exception as exc:
            db.rollback()
            logger.exception("%s notification pass failed: %s", name, exc)
        finally:
            db.close()
        return sent

    async def _send_immediate(self, db: Session, event: LegalEvent) -> None:
        event.notified_immediate = True
        await self.notifier.send_to_all_users(
            db, f"New Legal Event: {event.title}", _event_body(event), KIND_NEW, event.id
        )

    async def _send_24h(self, db: Session, event: LegalEvent) -> None:
        event.notified_24h = True
        await self.notifier.send_to_all_users(
            db, f"Reminder: {event.title} is in 24 hours!", _event_body(event), KIND_24H, event.id
        )

    async def _send_30min(self, db: Session, event: LegalEvent) -> None:
        event.notified_30min = True
        await self.notifier.send_to_all_users(
            db, f"Final Reminder: {event.title} starts in 30 minutes!", _event_body(event), KIND_30MIN, event.id
        )
