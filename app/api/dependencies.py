"""Shared API dependencies: auth plus the services built once at startup."""
from fastapi import Request

from app.core.security import get_current_user
from app.services.event_notification_scheduler import EventNotificationScheduler
from app.services.notification_service import NotificationService
from app.services.subscription_service import SubscriptionService


def get_subscription_service(request: Request) -> SubscriptionService:
    return request.app.state.subscription_service


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_scheduler(request: Request) -> EventNotificationScheduler:
    return request.app.state.notification_scheduler


__all__ = [
    "get_current_user",
    "get_notification_service",
    "get_scheduler",
    "get_subscription_service",
]
