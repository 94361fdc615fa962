"""
Live notification feed.
Tracks which notification channels each socket listens to and pushes events to them.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

CHANNELS = ("notification", "legal_event", "all")
DEFAULT_CHANNELS = ["all"]


def _envelope(event_type: str, data: dict) -> dict:
    return {"type": event_type, "data": data, "timestamp": datetime.utcnow().isoformat()}


class ConnectionManager:
    """Socket registry keyed by channel. Sockets that fail a send are dropped."""

    def __init__(self):
        self.channels: Dict[str, Set[WebSocket]] = {channel: set() for channel in CHANNELS}

    @property
    def connection_count(self) -> int:
        return len(set().union(*self.channels.values()))

    def _listening(self, websocket: WebSocket) -> List[str]:
        return [channel for channel in CHANNELS if websocket in self.channels[channel]]

    async def connect(self, websocket: WebSocket, channels: Iterable[str] | None = None) -> List[str]:
        await websocket.accept()
        joined = self.subscribe(websocket, channels)
        await websocket.send_json(
            {
                "type": "connection_established",
                "message": "Connected to Wakili Pro real-time notifications",
                "subscriptions": joined,
                "timestamp": datetime.utcnow().isoformat(),
            }
        )
        return joined

    def subscribe(self, websocket: WebSocket, channels: Iterable[str] | None) -> List[str]:
        """Replace a socket's channels; unknown names are ignored and an empty result means "all"."""
        requested = {channel for channel in (channels or ()) if isinstance(channel, str)}
        wanted = [channel for channel in CHANNELS if channel in requested] or list(DEFAULT_CHANNELS)
        for channel, sockets in self.channels.items():
            if channel in wanted:
                sockets.add(websocket)
            else:
                sockets.discard(websocket)
        return wanted

    def disconnect(self, websocket: WebSocket) -> None:
        for sockets in self.channels.values():
            sockets.discard(websocket)

    async def broadcast(self, event_type: str, data: dict) -> int:
        """Push to every socket on the event's channel or on "all"; returns how many received it."""
        message = _envelope(event_type, data)
        recipients = self.channels.get(event_type, set()) | self.channels["all"]
        delivered = 0
        for websocket in list(recipients):
            if await self._send(websocket, message):
                delivered += 1
        return delivered

    async def send_personal(self, websocket: WebSocket, event_type: str, data: dict) -> bool:
        return await self._send(websocket, _envelope(event_type, data))

    async def _send(self, websocket: WebSocket, message: dict) -> bool:
        try:
            await websocket.send_json(message)
        except Exception as exc:
            logger.info("Dropping WebSocket after failed send: %s", exc)
            self.disconnect(websocket)
            return False
        return True


manager = ConnectionManager()
