"""Pricing plan management mirrored to Stripe products and prices."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..domain.errors import ConflictError, NotFoundError, ProcessorError
from ..domain.models.pricing_plan import PricingPlan
from ..domain.models.subscription import ENTITLED_STATUSES
from ..domain.ports.payments import PaymentProcessor
from ..infrastructure.repositories.pricing_plan_repository import PricingPlanRepository
from ..infrastructure.repositories.subscription_repository import SubscriptionRepository

logger = logging.getLogger(__name__)

_PRODUCT_FIELDS = ("name", "description")
_PRICE_FIELDS = ("price", "currency", "interval")


class PricingService:
    def __init__(
        self,
        plan_repository: PricingPlanRepository,
        subscription_repository: SubscriptionRepository,
        processor: PaymentProcessor,
    ) -> None:
        self._plans = plan_repository
        self._subscriptions = subscription_repository
        self._processor = processor

    def create_plan(
        self,
        name: str,
        description: str,
        price: Decimal,
        interval: str,
        currency: str = "USD",
        features: Optional[List[str]] = None,
        max_video_quality: str = "1080p",
        concurrent_streams: int = 2,
    ) -> PricingPlan:
        plan = PricingPlan(
            id="",
            name=name,
            description=description,
            price=price,
            currency=currency,
            interval=interval,
            external_price_id="",
            features=list(features or []),
            max_video_quality=max_video_quality,
            concurrent_streams=concurrent_streams,
        )
        product_id = self._processor.create_product(
            name=name,
            description=description,
            metadata={
                "maxVideoQuality": max_video_quality,
                "concurrentStreams": str(concurrent_streams),
            },
        )
        plan.external_price_id = self._processor.create_price(
            product_id, plan.unit_amount, currency, interval
        )
        plan = self._plans.create(plan)
        logger.info("Created pricing plan %s (%s)", plan.id, plan.external_price_id)
        return plan

    def list_plans(self, active: Optional[bool] = None, interval: Optional[str] = None) -> List[PricingPlan]:
        return self._plans.list(is_active=active, interval=interval)

    def get_plan(self, plan_id: str) -> PricingPlan:
        plan = self._plans.get_by_id(plan_id)
        if not plan:
            raise NotFoundError("Pricing plan not found")
        return plan

    def update_plan(self, plan_id: str, changes: Dict[str, Any]) -> PricingPlan:
        """Apply field changes and keep the Stripe product and price in step.

        A new price, currency or interval cannot be set on an existing Stripe
        price, so a replacement price is created and the old one archived.
        """
        plan = self.get_plan(plan_id)
        updates = {name: value for name, value in changes.items() if value is not None}

        if any(name in updates for name in _PRODUCT_FIELDS):
            product_id = self._processor.get_price_product(plan.external_price_id)
            self._processor.update_product(
                product_id,
                name=updates.get("name", plan.name),
                description=updates.get("description", plan.description),
            )

        if any(name in updates and updates[name] != getattr(plan, name) for name in _PRICE_FIELDS):
            draft = PricingPlan(
                id=plan.id,
                name=plan.name,
                description=plan.description,
                price=Decimal(updates.get("price", plan.price)),
                currency=updates.get("currency", plan.currency),
                interval=updates.get("interval", plan.interval),
                external_price_id=plan.external_price_id,
            )
            product_id = self._processor.get_price_product(plan.external_price_id)
            updates["external_price_id"] = self._processor.create_price(
                product_id, draft.unit_amount, draft.currency, draft.interval
            )
            self._archive_price(plan.external_price_id)

        if not updates:
            return plan
        return self._plans.update(plan_id, **updates)

    def delete_plan(self, plan_id: str) -> None:
        """
        Delete a plan that no active or trialing subscription references.

        Raises:
            NotFoundError: Unknown plan
            ConflictError: The plan still has entitled subscribers
        """
        plan = self.get_plan(plan_id)
        active = self._subscriptions.count_by_status(ENTITLED_STATUSES, plan_id=plan.id)
        if active > 0:
            raise ConflictError(
                "Cannot delete pricing plan with active subscriptions. Deactivate it instead."
            )
        self._archive_price(plan.external_price_id)
        self._plans.delete(plan.id)
        logger.info("Deleted pricing plan %s", plan.id)

    def set_active(self, plan_id: str, active: bool) -> PricingPlan:
        plan = self.get_plan(plan_id)
        updated = self._plans.update(plan.id, is_active=active)
        try:
            self._processor.set_price_active(plan.external_price_id, active)
        except ProcessorError as exc:
            logger.warning("Failed to update Stripe price %s: %s", plan.external_price_id, exc)
        return updated

    def _archive_price(self, price_id: str) -> None:
        try:
            self._processor.set_price_active(price_id, False)
        except ProcessorError as exc:
            logger.warning("Failed to archive Stripe price %s: %s", price_id, exc)
