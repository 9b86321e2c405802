"""Stripe checkout, subscription and webhook endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from ....core.dependencies import get_pricing_service, get_subscription_service, get_webhook_service
from ....domain.models import User
from ....services.pricing_service import PricingService
from ....services.subscription_service import SubscriptionService
from ....services.webhook_service import WebhookService
from ..dependencies import get_current_user
from ..schemas.stripe_schemas import CancelSubscriptionRequest, CheckoutSessionRequest
from ..serializers import serialize_plan, serialize_subscription

router = APIRouter(prefix="/api/stripe", tags=["Stripe Payments"])


@router.get("/plans")
def list_plans(
    active: Optional[bool] = None,
    pricing_service: PricingService = Depends(get_pricing_service),
) -> Dict[str, Any]:
    return {"plans": [serialize_plan(plan) for plan in pricing_service.list_plans(active=active)]}


@router.post("/create-checkout-session")
def create_checkout_session(
    payload: CheckoutSessionRequest,
    user: User = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> Dict[str, Any]:
    session = subscription_service.create_checkout_session(
        user=user,
        price_id=payload.price_id,
        success_url=payload.success_url,
        cancel_url=payload.cancel_url,
    )
    return {"sessionId": session.session_id, "url": session.url}


@router.get("/subscription")
def get_subscription(
    user: User = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> Dict[str, Any]:
    """Current subscription, refreshed from Stripe and joined with its plan."""
    subscription = subscription_service.refresh(user.id)
    if subscription is None:
        return {"subscription": None}
    subscription, plan = subscription_service.with_plan(subscription)
    return {"subscription": serialize_subscription(subscription, plan)}


@router.post("/cancel-subscription")
def cancel_subscription(
    payload: Optional[CancelSubscriptionRequest] = None,
    user: User = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> Dict[str, Any]:
    payload = payload or CancelSubscriptionRequest()
    subscription_service.cancel(user.id, immediate=payload.immediate, reason=payload.reason)
    if payload.immediate:
        return {"message": "Subscription cancelled immediately", "cancelledImmediately": True}
    return {
        "message": "Subscription will be cancelled at period end",
        "cancelledImmediately": False,
        "cancelAtPeriodEnd": True,
    }


@router.post("/reactivate-subscription")
def reactivate_subscription(
    user: User = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> Dict[str, Any]:
    transition = subscription_service.reactivate(user.id)
    return {
        "message": "Subscription reactivated successfully",
        "subscription": serialize_subscription(transition.record),
    }


@router.post("/webhook", include_in_schema=False)
async def stripe_webhook(
    request: Request,
    webhook_service: WebhookService = Depends(get_webhook_service),
) -> Dict[str, Any]:
    """Handle Stripe webhook events; the raw body is needed for signature checks."""
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    return await run_in_threadpool(webhook_service.handle, payload, signature)
