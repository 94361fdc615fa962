"""
Mock subscription billing.
Simulates plan purchase, renewal and cancellation without a real payment processor.
"""
from __future__ import annotations

import logging
import random
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol

from dateutil.relativedelta import relativedelta

from app.core.exceptions import (
    AlreadyActiveError,
    InvalidPlanError,
    PaymentProcessorUnavailableError,
    SubscriptionNotActiveError,
    SubscriptionNotFoundError,
)
from app.models.subscription import PlanInfo, Subscription, SubscriptionPlan, SubscriptionStatus

logger = logging.getLogger(__name__)

PLAN_DURATIONS = {
    SubscriptionPlan.MONTHLY: relativedelta(months=1),
    SubscriptionPlan.YEARLY: relativedelta(years=1),
}


def default_plans(monthly_price_kes: int = 3499, yearly_price_kes: int = 39999) -> List[PlanInfo]:
    return [
        PlanInfo(SubscriptionPlan.MONTHLY, monthly_price_kes, "Monthly", "1 month"),
        PlanInfo(SubscriptionPlan.YEARLY, yearly_price_kes, "Yearly", "12 months"),
    ]


def compute_end_date(plan: SubscriptionPlan, start: datetime) -> datetime:
    """One calendar month or year after start; month-end days clamp (Jan 31 -> Feb 28/29)."""
    return start + PLAN_DURATIONS[plan]


class PaymentProcessor(Protocol):
    def charge(self, user_id: str, plan: PlanInfo) -> Dict[str, Any]:
        """Return payment info, or raise PaymentProcessorUnavailableError."""
        ...


class MockPaymentProcessor:
    """Always approves, except for a configurable share of simulated outages."""

    def __init__(
        self,
        failure_rate: float = 0.1,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        self.failure_rate = failure_rate
        self.rng = rng or random.Random()
        self.clock = clock

    def charge(self, user_id: str, plan: PlanInfo) -> Dict[str, Any]:
        if self.rng.random() < self.failure_rate:
            logger.warning("Simulated payment outage for user=%s plan=%s", user_id, plan.plan.value)
            raise PaymentProcessorUnavailableError()
        return {
            "method": "mock",
            "status": "paid",
            "amountKES": plan.price_kes,
            "reference": f"MOCK-{uuid.uuid4().hex[:12].upper()}",
            "paidAt": self.clock(),
        }


class SubscriptionStore:
    """Volatile per-process storage: the current record per user plus full history."""

    def __init__(self):
        self._current: Dict[str, Subscription] = {}
        self._history: Dict[str, List[Subscription]] = {}

    def get(self, user_id: str) -> Optional[Subscription]:
        return self._current.get(user_id)

    def put(self, subscription: Subscription) -> None:
        self._current[subscription.user_id] = subscription
        self._history.setdefault(subscription.user_id, []).append(subscription)

    def history(self, user_id: str) -> List[Subscription]:
        return list(self._history.get(user_id, []))

    def clear(self) -> None:
        self._current.clear()
        self._history.clear()


class SubscriptionService:
    """Subscription lifecycle: subscribe, renew, cancel, status and history."""

    def __init__(
        self,
        store: SubscriptionStore,
        processor: PaymentProcessor,
        plans: Optional[List[PlanInfo]] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.processor = processor
        self.plans: Dict[SubscriptionPlan, PlanInfo] = {p.plan: p for p in (plans or default_plans())}
        self.clock = clock
        self._lock = threading.Lock()

    def list_plans(self) -> List[PlanInfo]:
        return list(self.plans.values())

    def resolve_plan(self, plan: Any) -> PlanInfo:
        if isinstance(plan, SubscriptionPlan):
            key = plan
        else:
            try:
                key = SubscriptionPlan(plan) if plan is not None else None
            except (TypeError, ValueError):
                key = None
        if key is None or key not in self.plans:
            raise InvalidPlanError()
        return self.plans[key]

    def get_current(self, user_id: str) -> Optional[Subscription]:
        """Current record with lazy expiry applied."""
        subscription = self.store.get(user_id)
        if subscription and subscription.is_active and subscription.is_past_end(self.clock()):
            subscription.status = SubscriptionStatus.EXPIRED
            logger.info("Subscription for user=%s expired at %s", user_id, subscription.end_date)
        return subscription

    def get_status(self, user_id: str) -> Dict[str, Any]:
        with self._lock:
            subscription = self.get_current(user_id)
        plan = self.plans.get(subscription.plan) if subscription else None
        return {
            "subscription": subscription.to_dict() if subscription else None,
            "plan": plan.to_dict() if plan else None,
            "isActive": bool(subscription and subscription.status == SubscriptionStatus.ACTIVE),
            "isExpired": bool(subscription and subscription.is_past_end(self.clock())),
            "isCancelled": bool(subscription and subscription.status == SubscriptionStatus.CANCELLED),
            "expiresAt": subscription.end_date.isoformat() if subscription else None,
            "cancelledAt": (
                subscription.cancelled_at.isoformat()
                if subscription and subscription.cancelled_at
                else None
            ),
        }

    def get_history(self, user_id: str) -> List[Subscription]:
        with self._lock:
            self.get_current(user_id)
            return self.store.history(user_id)

    def subscribe(self, user_id: str, plan: Any) -> Subscription:
        plan_info = self.resolve_plan(plan)
        with self._lock:
            existing = self.get_current(user_id)
            if existing and existing.is_active:
                raise AlreadyActiveError(subscription=existing)
            subscription = self._activate(user_id, plan_info, renewed=False)
        logger.info("User %s subscribed to %s", user_id, plan_info.plan.value)
        return subscription

    def renew(self, user_id: str, plan: Any = None) -> Subscription:
        with self._lock:
            existing = self.get_current(user_id)
            if plan is None and existing is not None:
                plan = existing.plan
            plan_info = self.resolve_plan(plan)
            subscription = self._activate(user_id, plan_info, renewed=True)
        logger.info("User %s renewed %s", user_id, plan_info.plan.value)
        return subscription

    def cancel(self, user_id: str) -> Subscription:
        with self._lock:
            subscription = self.get_current(user_id)
            if subscription is None:
                raise SubscriptionNotFoundError()
            if not subscription.is_active:
                raise SubscriptionNotActiveError(subscription=subscription)
            subscription.status = SubscriptionStatus.CANCELLED
            subscription.cancelled_at = self.clock()
        logger.info("User %s cancelled %s", user_id, subscription.plan.value)
        return subscription

    def _activate(self, user_id: str, plan_info: PlanInfo, renewed: bool) -> Subscription:
        payment_info = self.processor.charge(user_id, plan_info)
        now = self.clock()
        subscription = Subscription(
            user_id=user_id,
            plan=plan_info.plan,
            status=SubscriptionStatus.ACTIVE,
            price_kes=plan_info.price_kes,
            start_date=now,
            end_date=compute_end_date(plan_info.plan, now),
            payment_info=payment_info,
            renewed=renewed,
        )
        self.store.put(subscription)
        return subscription
