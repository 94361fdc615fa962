from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_USER_ID = "mock-user"


class SubscriptionRequest(BaseModel):
    """
    Body of subscribe/renew/cancel.

    `plan` is left untyped so any unknown value, strings or not, reaches the
    service and comes back as InvalidPlan instead of a validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(default=DEFAULT_USER_ID, alias="userId", min_length=1)
    plan: Optional[Any] = None
