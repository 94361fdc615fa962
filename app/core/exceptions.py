"""Custom exception types for domain and API layers."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.models.subscription import Subscription


class AppError(Exception):
    """Base app exception."""


class IntegrationError(AppError):
    """External integration call failure."""


class SubscriptionError(AppError):
    """Subscription flow failure surfaced directly as an HTTP error response."""

    status_code = 400
    default_message = "Subscription request failed."

    def __init__(self, message: Optional[str] = None, subscription: Optional["Subscription"] = None):
        self.message = message or self.default_message
        self.subscription = subscription
        super().__init__(self.message)


class InvalidPlanError(SubscriptionError):
    status_code = 400
    default_message = "Invalid plan selected."


class AlreadyActiveError(SubscriptionError):
    status_code = 409
    default_message = "You already have an active subscription."


class PaymentProcessorUnavailableError(SubscriptionError):
    """Transient; the caller should ask the user to retry manually."""

    status_code = 502
    default_message = "Payment processor unavailable. Please try again."


class SubscriptionNotFoundError(SubscriptionError):
    status_code = 404
    default_message = "No subscription found."


class SubscriptionNotActiveError(SubscriptionError):
    status_code = 409
    default_message = "No active subscription to cancel."
