from __future__ import annotations

import random
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import (
    AlreadyActiveError,
    InvalidPlanError,
    PaymentProcessorUnavailableError,
    SubscriptionNotActiveError,
    SubscriptionNotFoundError,
)
from app.models.subscription import SubscriptionPlan, SubscriptionStatus
from app.services.subscription_service import (
    MockPaymentProcessor,
    SubscriptionService,
    SubscriptionStore,
    compute_end_date,
)


def make_service(clock, failure_rate: float = 0.0) -> SubscriptionService:
    return SubscriptionService(
        store=SubscriptionStore(),
        processor=MockPaymentProcessor(failure_rate=failure_rate, clock=clock),
        clock=clock,
    )


@pytest.fixture
def service(clock):
    return make_service(clock)


@pytest.mark.parametrize("plan", ["WEEKLY", "monthly", "", None, 42, ["MONTHLY"], {"plan": "YEARLY"}])
def test_unknown_plan_is_rejected_without_touching_state(service, plan):
    with pytest.raises(InvalidPlanError) as excinfo:
        service.subscribe("user-1", plan)
    assert excinfo.value.status_code == 400
    assert service.store.get("user-1") is None
    assert service.get_history("user-1") == []


def test_subscribe_stores_active_record(service, clock):
    sub = service.subscribe("user-1", "MONTHLY")

    assert sub.status == SubscriptionStatus.ACTIVE
    assert sub.plan == SubscriptionPlan.MONTHLY
    assert sub.price_kes == 3499
    assert sub.start_date == clock.now
    assert sub.payment_info["method"] == "mock"
    assert sub.payment_info["status"] == "paid"
    assert sub.renewed is False
    assert service.store.get("user-1") is sub


def test_second_subscribe_returns_original_record_unchanged(service):
    first = service.subscribe("user-1", "MONTHLY")
    snapshot = first.to_dict()

    with pytest.raises(AlreadyActiveError) as excinfo:
        service.subscribe("user-1", "YEARLY")

    assert excinfo.value.status_code == 409
    assert excinfo.value.subscription is first
    assert service.store.get("user-1").to_dict() == snapshot


def test_monthly_window_is_one_calendar_month(service, clock):
    sub = service.subscribe("user-1", "MONTHLY")
    assert sub.end_date == datetime(2025, 4, 14, 9, 0, 0)


def test_yearly_window_is_one_calendar_year(service):
    sub = service.subscribe("user-1", SubscriptionPlan.YEARLY)
    assert sub.end_date == datetime(2026, 3, 14, 9, 0, 0)
    assert sub.price_kes == 39999


def test_month_end_start_dates_clamp():
    assert compute_end_date(SubscriptionPlan.MONTHLY, datetime(2025, 1, 31, 12)) == datetime(2025, 2, 28, 12)
    assert compute_end_date(SubscriptionPlan.YEARLY, datetime(2024, 2, 29)) == datetime(2025, 2, 28)


def test_payment_outage_leaves_no_record(clock):
    service = make_service(clock, failure_rate=1.0)
    with pytest.raises(PaymentProcessorUnavailableError) as excinfo:
        service.subscribe("user-1", "MONTHLY")
    assert excinfo.value.status_code == 502
    assert service.store.get("user-1") is None


def test_seeded_processor_fails_roughly_ten_percent():
    processor = MockPaymentProcessor(failure_rate=0.1, rng=random.Random(1234))
    service = SubscriptionService(SubscriptionStore(), processor)
    failures = 0
    for i in range(1000):
        try:
            service.subscribe(f"user-{i}", "MONTHLY")
        except PaymentProcessorUnavailableError:
            failures += 1
    assert 50 < failures < 150


def test_failure_rate_is_validated():
    with pytest.raises(ValueError):
        MockPaymentProcessor(failure_rate=1.5)


def test_cancel_missing_subscription(service):
    with pytest.raises(SubscriptionNotFoundError) as excinfo:
        service.cancel("ghost")
    assert excinfo.value.status_code == 404


def test_cancel_twice_is_not_active(service, clock):
    service.subscribe("user-1", "MONTHLY")
    clock.now += timedelta(days=3)

    cancelled = service.cancel("user-1")
    assert cancelled.status == SubscriptionStatus.CANCELLED
    assert cancelled.cancelled_at == clock.now

    with pytest.raises(SubscriptionNotActiveError) as excinfo:
        service.cancel("user-1")
    assert excinfo.value.status_code == 409
    assert excinfo.value.subscription is cancelled


def test_renew_active_subscription_replaces_window(service, clock):
    original = service.subscribe("user-1", "YEARLY")
    clock.now += timedelta(days=10)

    renewed = service.renew("user-1")

    assert renewed is not original
    assert renewed.renewed is True
    assert renewed.plan == SubscriptionPlan.YEARLY
    assert renewed.start_date == clock.now
    assert renewed.end_date == compute_end_date(SubscriptionPlan.YEARLY, clock.now)
    assert service.store.get("user-1") is renewed


def test_renew_can_switch_plan(service):
    service.subscribe("user-1", "YEARLY")
    renewed = service.renew("user-1", "MONTHLY")
    assert renewed.plan == SubscriptionPlan.MONTHLY
    assert renewed.price_kes == 3499


def test_renew_after_cancel_reactivates(service):
    service.subscribe("user-1", "MONTHLY")
    service.cancel("user-1")
    renewed = service.renew("user-1")
    assert renewed.status == SubscriptionStatus.ACTIVE
    assert renewed.cancelled_at is None


def test_renew_without_record_or_plan_is_invalid(service):
    with pytest.raises(InvalidPlanError):
        service.renew("user-1")
    assert service.store.get("user-1") is None


def test_renew_surfaces_payment_outage(clock):
    service = make_service(clock)
    service.subscribe("user-1", "MONTHLY")
    service.processor.failure_rate = 1.0
    with pytest.raises(PaymentProcessorUnavailableError):
        service.renew("user-1")
    assert service.store.get("user-1").renewed is False


def test_lapsed_subscription_expires_and_allows_new_subscribe(service, clock):
    service.subscribe("user-1", "MONTHLY")
    clock.now += timedelta(days=40)

    status = service.get_status("user-1")
    assert status["subscription"]["status"] == "EXPIRED"
    assert status["isActive"] is False
    assert status["isExpired"] is True

    fresh = service.subscribe("user-1", "YEARLY")
    assert fresh.status == SubscriptionStatus.ACTIVE
    assert [s.plan for s in service.get_history("user-1")] == [
        SubscriptionPlan.MONTHLY,
        SubscriptionPlan.YEARLY,
    ]


def test_status_for_unknown_user(service):
    status = service.get_status("nobody")
    assert status["subscription"] is None
    assert status["plan"] is None
    assert status["isActive"] is False
    assert status["expiresAt"] is None


def test_to_dict_uses_client_keys(service):
    data = service.subscribe("user-1", "MONTHLY").to_dict()
    assert data["plan"] == "MONTHLY"
    assert data["status"] == "ACTIVE"
    assert data["priceKES"] == 3499
    assert data["startDate"] == "2025-03-14T09:00:00"
    assert data["endDate"] == "2025-04-14T09:00:00"
    assert data["paymentInfo"]["paidAt"] == "2025-03-14T09:00:00"
    assert data["cancelledAt"] is None
