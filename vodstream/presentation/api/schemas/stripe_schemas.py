"""Pydantic schemas for Stripe API endpoints."""

from typing import Optional

from pydantic import Field

from .base import RequestModel


class CheckoutSessionRequest(RequestModel):
    """Request to start a hosted checkout for a plan."""

    price_id: str = Field(..., min_length=1, description="Stripe price ID of an active plan")
    success_url: str = Field(..., min_length=1, description="Redirect after payment")
    cancel_url: str = Field(..., min_length=1, description="Redirect if the user abandons checkout")


class CancelSubscriptionRequest(RequestModel):
    """Request to cancel the current subscription."""

    immediate: bool = Field(default=False, description="Cancel now instead of at period end")
    reason: Optional[str] = Field(None, description="Free-text cancellation reason")
