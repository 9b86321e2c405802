"""Translate verified Stripe webhook events into subscription transitions."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..domain.ports.payments import PaymentProcessor
from ..domain.subscription_state import (
    ExternalDeleted,
    ExternalUpdated,
    PaymentFailed,
    PaymentSucceeded,
    ProcessorSnapshot,
)
from ..infrastructure.repositories.pricing_plan_repository import PricingPlanRepository
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


def invoice_subscription_id(invoice: Mapping[str, Any]) -> Optional[str]:
    """Subscription referenced by an invoice, across Stripe API versions."""
    subscription = invoice.get("subscription")
    if subscription:
        return subscription if isinstance(subscription, str) else subscription.get("id")
    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    subscription = details.get("subscription")
    if subscription and not isinstance(subscription, str):
        return subscription.get("id")
    return subscription


class WebhookService:
    """Verifies webhook deliveries and routes them to the subscription reconciler."""

    def __init__(
        self,
        processor: PaymentProcessor,
        subscription_service: SubscriptionService,
        plan_repository: PricingPlanRepository,
    ) -> None:
        self._processor = processor
        self._subscriptions = subscription_service
        self._plans = plan_repository
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], bool]] = {
            "checkout.session.completed": self._on_checkout_completed,
            "invoice.payment_succeeded": self._on_payment_succeeded,
            "invoice.payment_failed": self._on_payment_failed,
            "customer.subscription.updated": self._on_subscription_updated,
            "customer.subscription.deleted": self._on_subscription_deleted,
        }

    def handle(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify and process one delivery.

        Raises:
            SignatureInvalidError: The delivery failed authentication; nothing was processed
        """
        event = self._processor.construct_event(payload, signature)
        event_type = event.get("type", "")
        logger.info("Received webhook %s (%s)", event_type, event.get("id"))

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled webhook event type %s", event_type)
            return {"received": True, "handled": False, "event_type": event_type}

        obj = (event.get("data") or {}).get("object") or {}
        handled = handler(obj)
        return {"received": True, "handled": handled, "event_type": event_type}

    def _on_checkout_completed(self, session: Mapping[str, Any]) -> bool:
        metadata = session.get("metadata") or {}
        user_id = metadata.get("userId")
        plan_id = metadata.get("pricingPlanId")
        subscription_id = session.get("subscription")
        if not user_id or not plan_id or not subscription_id:
            logger.error("Checkout session %s is missing metadata", session.get("id"))
            return False
        if self._plans.get_by_id(plan_id) is None:
            logger.error("Checkout session %s references unknown plan %s", session.get("id"), plan_id)
            return False
        self._subscriptions.complete_checkout(
            user_id=user_id,
            plan_id=plan_id,
            external_subscription_id=subscription_id,
            external_customer_id=session.get("customer") or "",
        )
        return True

    def _on_payment_succeeded(self, invoice: Mapping[str, Any]) -> bool:
        subscription_id = invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info("Invoice %s is not tied to a subscription", invoice.get("id"))
            return False
        self._subscriptions.apply(PaymentSucceeded(subscription_id))
        return True

    def _on_payment_failed(self, invoice: Mapping[str, Any]) -> bool:
        subscription_id = invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info("Invoice %s is not tied to a subscription", invoice.get("id"))
            return False
        self._subscriptions.apply(PaymentFailed(subscription_id))
        return True

    def _on_subscription_updated(self, subscription: Mapping[str, Any]) -> bool:
        snapshot = ProcessorSnapshot.from_processor(subscription)
        self._subscriptions.apply(ExternalUpdated(subscription["id"], snapshot))
        return True

    def _on_subscription_deleted(self, subscription: Mapping[str, Any]) -> bool:
        self._subscriptions.apply(ExternalDeleted(subscription["id"]))
        return True
