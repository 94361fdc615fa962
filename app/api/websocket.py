"""
WebSocket API Endpoints
Live notification feed
"""
from __future__ import annotations

import json
from typing import List

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from app.websockets.connection_manager import manager

router = APIRouter()


@router.websocket("/ws")
async def notification_feed(
    websocket: WebSocket,
    subscribe: List[str] = Query(default=["all"]),
):
    """
    Client messages:
      {"type": "ping"}                                -> "pong"
      {"type": "subscribe", "channels": [...]}        -> "subscribed" with the channels now active

    Example:
      ws://localhost:8000/ws?subscribe=notification
    """
    await manager.connect(websocket, subscribe)
    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                continue
            if not isinstance(message, dict):
                continue
            if message.get("type") == "ping":
                await manager.send_personal(websocket, "pong", {"status": "alive"})
            elif message.get("type") == "subscribe":
                channels = message.get("channels")
                active = manager.subscribe(websocket, channels if isinstance(channels, list) else None)
                await manager.send_personal(websocket, "subscribed", {"subscriptions": active})
    except WebSocketDisconnect:
        manager.disconnect(websocket)
