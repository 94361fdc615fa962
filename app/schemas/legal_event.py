from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LegalEventCreate(BaseModel):
    title: str = Field(min_length=1)
    event_date: datetime
    source_url: str = Field(min_length=1)
    source: Optional[str] = None

    @field_validator("event_date")
    @classmethod
    def to_naive_utc(cls, value: datetime) -> datetime:
        """Events are stored as naive UTC."""
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class LegalEventSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    event_date: datetime
    source_url: str
    source: Optional[str] = None
    notified_immediate: bool
    notified_24h: bool
    notified_30min: bool
