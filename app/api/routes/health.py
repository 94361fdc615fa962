"""
Health API Routes
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from fastapi import status

from app.api.dependencies import get_scheduler
from app.database import database_health
from app.services.event_notification_scheduler import EventNotificationScheduler
from app.websockets.connection_manager import manager

router = APIRouter()


@router.get("/health")
async def health_check(
    scheduler: EventNotificationScheduler = Depends(get_scheduler),
) -> JSONResponse:
    """Application, database and scheduler health"""
    db = database_health()
    ok = bool(db.get("ok"))
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if ok else "degraded",
            "database": db,
            "scheduler": {
                "running": scheduler.is_running,
                "cron": scheduler.cron,
                "last_tick_at": scheduler.last_tick_at.isoformat() if scheduler.last_tick_at else None,
                "next_run_at": scheduler.next_run_at.isoformat() if scheduler.next_run_at else None,
            },
            "websocket_connections": manager.connection_count,
        },
    )
