from typing import Optional

from pydantic import BaseModel, Field

from schemas.user import Subscription


class SubscriptionPlan(BaseModel):
    """Static plan catalog entry."""

    id: str
    name: str
    price: float
    description: str


class ActivateSubscriptionRequest(BaseModel):
    plan_id: str = Field(min_length=1)


class SubscriptionStatusResponse(BaseModel):
    subscription: Optional[Subscription] = None
    is_active: bool = Field(
        description="Status is active and the expiry has not passed yet."
    )
