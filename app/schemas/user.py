from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class UserCreate(BaseModel):
    email: str
    name: Optional[str] = None
    role: Literal["CLIENT", "LAWYER", "ADMIN"] = "CLIENT"


class UserSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
