"""Subscription routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import get_current_user
from core.dependencies import SubscriptionManagerDep
from core.exceptions import PlanNotFoundError
from schemas.subscription import (
    ActivateSubscriptionRequest,
    SubscriptionPlan,
    SubscriptionStatusResponse,
)
from schemas.user import User

router = APIRouter(prefix="/api/subscription", tags=["Subscription"])


@router.get("/plans", response_model=List[SubscriptionPlan], summary="List plans")
def list_plans(subscription_manager: SubscriptionManagerDep) -> List[SubscriptionPlan]:
    return subscription_manager.get_plans()


@router.get(
    "",
    response_model=SubscriptionStatusResponse,
    summary="Current subscription",
)
def get_subscription(
    subscription_manager: SubscriptionManagerDep,
    current_user: User = Depends(get_current_user),
) -> SubscriptionStatusResponse:
    return subscription_manager.get_subscription(current_user)


@router.post(
    "/activate",
    response_model=SubscriptionStatusResponse,
    summary="Activate a plan",
)
def activate_subscription(
    req: ActivateSubscriptionRequest,
    subscription_manager: SubscriptionManagerDep,
    current_user: User = Depends(get_current_user),
) -> SubscriptionStatusResponse:
    """Activate a plan for the caller.

    Replaces any existing subscription and adds the whole current catalog
    to the caller's library.
    """
    try:
        subscription = subscription_manager.activate(current_user, req.plan_id)
    except PlanNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subscription plan '{req.plan_id}' not found.",
        )
    return SubscriptionStatusResponse(subscription=subscription, is_active=True)
