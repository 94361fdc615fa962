from __future__ import annotations

import html
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.logger import get_logger
from app.integrations.email import EmailService
from app.models import Notification, User
from app.websockets.connection_manager import ConnectionManager

logger = get_logger(__name__)


class NotificationService:
    """Fans a notification out to every active user as in-app rows, plus optional e-mail and WebSocket pushes."""

    def __init__(
        self,
        email_service: Optional[EmailService] = None,
        connection_manager: Optional[ConnectionManager] = None,
    ):
        self.email_service = email_service
        self.connection_manager = connection_manager

    async def send_to_all_users(
        self,
        db: Session,
        title: str,
        message: str,
        kind: str,
        event_id: Optional[str] = None,
    ) -> int:
        """
        Store one in-app notification per active user and commit them together.

        Each row is flushed inside its own savepoint, so a rejected insert only
        drops that user's row. E-mails go out after the commit succeeds.
        Returns the number of users the notification was delivered to.
        """
        users = db.query(User).filter(User.is_active.is_(True)).all()
        recipients: List[Tuple[str, str]] = []
        for user in users:
            user_id, email = user.id, user.email
            try:
                with db.begin_nested():
                    db.add(self._build_notification(user_id, title, message, kind, event_id))
                    db.flush()
            except Exception as exc:
                logger.exception("Notification %r for user %s failed: %s", title, user_id, exc)
                continue
            recipients.append((user_id, email))
        db.commit()

        if self.email_service is not None:
            for _, email in recipients:
                await self._send_email(email, title, message)

        if self.connection_manager is not None:
            await self.connection_manager.broadcast(
                "notification",
                {"kind": kind, "title": title, "message": message, "event_id": event_id},
            )

        logger.info("Notification %r delivered to %s/%s users", title, len(recipients), len(users))
        return len(recipients)

    @staticmethod
    def _build_notification(
        user_id: str, title: str, message: str, kind: str, event_id: Optional[str]
    ) -> Notification:
        return Notification(user_id=user_id, event_id=event_id, kind=kind, title=title, message=message)

    async def _send_email(self, to: str, title: str, message: str) -> None:
        body = "<br>".join(html.escape(line) for line in message.splitlines())
        try:
            await self.email_service.send_email(to=to, subject=title, html_content=f"<p>{body}</p>")
        except Exception as exc:
            logger.warning("E-mail notification to %s failed: %s", to, exc)

    @staticmethod
    def list_for_user(db: Session, user_id: str, unread_only: bool = False, limit: int = 100) -> List[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc()).limit(limit).all()

    @staticmethod
    def mark_read(db: Session, notification_id: str) -> Optional[Notification]:
        notification = db.query(Notification).filter(Notification.id == notification_id).first()
        if notification is None:
            return None
        notification.is_read = True
        db.commit()
        return notification
