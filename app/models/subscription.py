"""In-memory subscription records for the mock billing flow."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class SubscriptionPlan(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class PlanInfo:
    plan: SubscriptionPlan
    price_kes: int
    label: str
    duration: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": self.plan.value,
            "priceKES": self.price_kes,
            "label": self.label,
            "duration": self.duration,
        }


@dataclass
class Subscription:
    user_id: str
    plan: SubscriptionPlan
    status: SubscriptionStatus
    price_kes: int
    start_date: datetime
    end_date: datetime
    payment_info: Dict[str, Any] = field(default_factory=dict)
    cancelled_at: Optional[datetime] = None
    renewed: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    def is_past_end(self, now: datetime) -> bool:
        return self.end_date < now

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the web and mobile clients read."""
        payment = dict(self.payment_info)
        if isinstance(payment.get("paidAt"), datetime):
            payment["paidAt"] = payment["paidAt"].isoformat()
        return {
            "userId": self.user_id,
            "plan": self.plan.value,
            "status": self.status.value,
            "priceKES": self.price_kes,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "paymentInfo": payment,
            "cancelledAt": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "renewed": self.renewed,
        }
