from __future__ import annotations

import pytest

from app.models import Notification
from app.services.notification_service import NotificationService


class RecordingEmail:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send_email(self, to, subject, html_content, **kwargs):
        if to in self.fail_for:
            raise RuntimeError("mailbox unavailable")
        self.sent.append((to, subject, html_content))
        return {"status": "sent", "to": to}


class RecordingManager:
    def __init__(self):
        self.events = []

    async def broadcast(self, event_type, data):
        self.events.append((event_type, data))
        return 1


@pytest.mark.asyncio
async def test_fans_out_to_active_users_only(db, users):
    service = NotificationService()

    delivered = await service.send_to_all_users(db, "Hello", "Body", "announcement")

    assert delivered == 3
    recipients = {n.user_id for n in db.query(Notification).all()}
    assert recipients == {u.id for u in users}


@pytest.mark.asyncio
async def test_rejected_insert_only_drops_that_user(db, users, rejected_users):
    brian = users[1]
    rejected_users.add(brian.id)
    email = RecordingEmail()
    service = NotificationService(email_service=email)

    delivered = await service.send_to_all_users(db, "Hello", "Body", "announcement")

    assert delivered == 2
    rows = db.query(Notification).all()
    assert len(rows) == 2
    assert brian.id not in {n.user_id for n in rows}
    assert sorted(to for to, _, _ in email.sent) == ["amina@example.co.ke", "carol@example.co.ke"]


@pytest.mark.asyncio
async def test_no_email_when_commit_fails(db, users, monkeypatch):
    email = RecordingEmail()
    service = NotificationService(email_service=email)

    def failing_commit():
        raise RuntimeError("database went away")

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(RuntimeError):
        await service.send_to_all_users(db, "Hello", "Body", "announcement")
    assert email.sent == []


@pytest.mark.asyncio
async def test_email_failures_are_logged_not_raised(db, users):
    email = RecordingEmail(fail_for={"amina@example.co.ke"})
    manager = RecordingManager()
    service = NotificationService(email_service=email, connection_manager=manager)

    delivered = await service.send_to_all_users(db, "Reminder", "Date: today\nSource: <url>", "legal_event_24h", None)

    assert delivered == 3
    assert sorted(to for to, _, _ in email.sent) == ["brian@example.co.ke", "carol@example.co.ke"]
    assert "&lt;url&gt;" in email.sent[0][2]
    assert manager.events == [
        ("notification", {"kind": "legal_event_24h", "title": "Reminder", "message": "Date: today\nSource: <url>", "event_id": None})
    ]


@pytest.mark.asyncio
async def test_list_and_mark_read(db, users):
    service = NotificationService()
    await service.send_to_all_users(db, "Hello", "Body", "announcement")
    user_id = users[0].id

    unread = NotificationService.list_for_user(db, user_id, unread_only=True)
    assert len(unread) == 1

    marked = NotificationService.mark_read(db, unread[0].id)
    assert marked.is_read is True
    assert NotificationService.list_for_user(db, user_id, unread_only=True) == []
    assert len(NotificationService.list_for_user(db, user_id)) == 1
    assert NotificationService.mark_read(db, "missing") is None
