"""
Wakili Pro - FastAPI Application
Mock subscription billing and legal event notifications
"""
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from datetime import datetime

from app.database import init_db, SessionLocal
from app.config import settings
from app.core.exceptions import SubscriptionError
from app.core.logger import configure_logging
from app.core.security import get_current_user
from app.integrations.email import EmailService
from app.services.event_notification_scheduler import EventNotificationScheduler
from app.services.notification_service import NotificationService
from app.services.subscription_service import (
    MockPaymentProcessor,
    SubscriptionService,
    SubscriptionStore,
    default_plans,
)
from app.websockets.connection_manager import manager
from app.api import websocket
from app.api.routes import health, auth, subscriptions, users, legal_events, notifications

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = "Invalid subscription request."


def build_subscription_service() -> SubscriptionService:
    return SubscriptionService(
        store=SubscriptionStore(),
        processor=MockPaymentProcessor(failure_rate=settings.payment_failure_rate),
        plans=default_plans(settings.monthly_price_kes, settings.yearly_price_kes),
    )


def build_notification_service() -> NotificationService:
    email_service = None
    if settings.notification_email_enabled:
        email_service = EmailService(settings)
        if not email_service.is_configured:
            logger.warning("NOTIFICATION_EMAIL_ENABLED is set but no SendGrid/SMTP credentials found")
            email_service = None
    return NotificationService(email_service=email_service, connection_manager=manager)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting Wakili Pro API...")

    try:
        init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")

    logger.info(f"API running on {settings.app_env} environment")
    scheduler = app.state.notification_scheduler
    if settings.scheduler_enabled:
        scheduler.start()
        logger.info("Legal event notification scheduler started")
    yield
    await scheduler.stop()
    logger.info("Shutting down Wakili Pro API...")


app = FastAPI(
    title=settings.app_name,
    description="Subscriptions and legal event notifications for Wakili Pro",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.subscription_service = build_subscription_service()
app.state.notification_service = build_notification_service()
app.state.notification_scheduler = EventNotificationScheduler(
    session_factory=SessionLocal,
    notifier=app.state.notification_service,
    cron=settings.notification_cron,
    immediate_batch_size=settings.immediate_batch_size,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SubscriptionError)
async def subscription_error_handler(request: Request, exc: SubscriptionError) -> JSONResponse:
    """Subscription failures keep the {success, error, subscription?} body the clients expect."""
    logger.info("Subscription request failed (%s): %s", type(exc).__name__, exc.message)
    content = {"success": False, "error": exc.message}
    if exc.subscription is not None:
        content["subscription"] = exc.subscription.to_dict()
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed subscription bodies answer 400 in the subscription error shape; other routes keep 422."""
    if not request.url.path.startswith(f"{settings.api_prefix}/subscriptions"):
        return await request_validation_exception_handler(request, exc)
    logger.info("Invalid subscription request on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": INVALID_REQUEST_MESSAGE},
    )


@app.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.utcnow().isoformat(),
    }


prefix = settings.api_prefix
app.include_router(health.router, prefix=prefix, tags=["Health"])
app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
app.include_router(
    subscriptions.router, prefix=f"{prefix}/subscriptions", tags=["Subscriptions"]
)
app.include_router(
    notifications.router, prefix=f"{prefix}/notifications", tags=["Notifications"]
)
app.include_router(
    users.router, prefix=f"{prefix}/users", tags=["Users"], dependencies=[Depends(get_current_user)]
)
app.include_router(
    legal_events.router,
    prefix=f"{prefix}/legal-events",
    tags=["Legal Events"],
    dependencies=[Depends(get_current_user)],
)
app.include_router(websocket.router, tags=["WebSocket"])
