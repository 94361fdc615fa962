import binascii
import hashlib
import os
import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

ADMIN_EMAIL = 'admin@wakilipro.test'
ADMIN_PASSWORD = 'correct horse battery staple'
_SALT = '00112233445566778899aabbccddeeff'
_DIGEST = binascii.hexlify(
    hashlib.pbkdf2_hmac('sha256', ADMIN_PASSWORD.encode('utf-8'), bytes.fromhex(_SALT), 1000)
).decode('ascii')

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('SCHEDULER_ENABLED', 'false')
os.environ.setdefault('SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')
os.environ.setdefault('ADMIN_EMAIL', ADMIN_EMAIL)
os.environ.setdefault('ADMIN_PASSWORD_HASH', f'pbkdf2_sha256$1000${_SALT}${_DIGEST}')

from sqlalchemy import event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.database import build_engine, init_db  # noqa: E402
from app.models import Notification, User  # noqa: E402


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 14, 9, 0, 0))


@pytest.fixture
def engine():
    engine = build_engine('sqlite://')
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users(db):
    people = [
        User(email='amina@example.co.ke', name='Amina Otieno', role='CLIENT'),
        User(email='brian@example.co.ke', name='Brian Kamau', role='LAWYER'),
        User(email='carol@example.co.ke', name='Carol Wanjiru', role='CLIENT'),
    ]
    db.add_all(people)
    db.add(User(email='inactive@example.co.ke', name='Dormant', is_active=False))
    db.commit()
    return people


@pytest.fixture
def rejected_users():
    """User ids whose notification INSERT is refused at flush time."""
    rejected = set()

    def refuse_row(mapper, connection, target):
        if target.user_id in rejected:
            raise RuntimeError('row rejected')

    event.listen(Notification, 'before_insert', refuse_row)
    yield rejected
    event.remove(Notification, 'before_insert', refuse_row)


@pytest.fixture
def client(session_factory, clock):
    from fastapi.testclient import TestClient

    from app.api.dependencies import get_scheduler, get_subscription_service
    from app.database import get_db
    from app.main import app
    from app.services.event_notification_scheduler import EventNotificationScheduler
    from app.services.notification_service import NotificationService
    from app.services.subscription_service import MockPaymentProcessor, SubscriptionService, SubscriptionStore

    subscription_service = SubscriptionService(
        store=SubscriptionStore(),
        processor=MockPaymentProcessor(failure_rate=0.0, clock=clock),
        clock=clock,
    )
    scheduler = EventNotificationScheduler(
        session_factory=session_factory,
        notifier=NotificationService(),
        clock=clock,
    )

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_subscription_service] = lambda: subscription_service
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    from app.core.security import create_access_token

    return {'Authorization': f'Bearer {create_access_token(ADMIN_EMAIL)}'}
