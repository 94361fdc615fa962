"""
Subscription API Routes
Mock billing: plans, status, history, subscribe, renew, cancel.
"""
from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_subscription_service
from app.schemas.subscription import DEFAULT_USER_ID, SubscriptionRequest
from app.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get("/plans")
async def list_plans(service: SubscriptionService = Depends(get_subscription_service)) -> dict:
    return {"success": True, "plans": [plan.to_dict() for plan in service.list_plans()]}


@router.get("/status")
async def subscription_status(
    user_id: str = Query(default=DEFAULT_USER_ID, alias="userId", min_length=1),
    service: SubscriptionService = Depends(get_subscription_service),
) -> dict:
    return {"success": True, **service.get_status(user_id)}


@router.get("/history")
async def subscription_history(
    user_id: str = Query(default=DEFAULT_USER_ID, alias="userId", min_length=1),
    service: SubscriptionService = Depends(get_subscription_service),
) -> dict:
    return {"success": True, "history": [s.to_dict() for s in service.get_history(user_id)]}


@router.post("/subscribe")
async def subscribe(
    payload: SubscriptionRequest,
    service: SubscriptionService = Depends(get_subscription_service),
) -> dict:
    subscription = service.subscribe(payload.user_id, payload.plan)
    return {
        "success": True,
        "subscription": subscription.to_dict(),
        "message": "Subscription activated successfully.",
    }


@router.post("/renew")
async def renew(
    payload: SubscriptionRequest,
    service: SubscriptionService = Depends(get_subscription_service),
) -> dict:
    subscription = service.renew(payload.user_id, payload.plan)
    return {
        "success": True,
        "subscription": subscription.to_dict(),
        "message": "Subscription renewed successfully.",
    }


@router.post("/cancel")
async def cancel(
    payload: SubscriptionRequest,
    service: SubscriptionService = Depends(get_subscription_service),
) -> dict:
    subscription = service.cancel(payload.user_id)
    return {
        "success": True,
        "subscription": subscription.to_dict(),
        "message": "Subscription cancelled.",
    }
