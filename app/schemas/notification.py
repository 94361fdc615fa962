from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class NotificationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    event_id: Optional[str] = None
    kind: str
    title: str
    message: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None
