"""Service reconciling local subscriptions with the payment processor."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Tuple

from ..domain.errors import NotFoundError
from ..domain.models.pricing_plan import PricingPlan
from ..domain.models.subscription import ENTITLED_STATUSES, Subscription
from ..domain.models.user import User
from ..domain.ports.payments import CheckoutSession, PaymentProcessor
from ..domain.subscription_state import (
    CheckoutCompleted,
    ExternalUpdated,
    Outcome,
    ProcessorSnapshot,
    SubscriptionEvent,
    Transition,
    UserCancelAtPeriodEnd,
    UserCancelImmediate,
    UserReactivate,
    apply_event,
)
from ..infrastructure.repositories.pricing_plan_repository import PricingPlanRepository
from ..infrastructure.repositories.subscription_repository import SubscriptionRepository
from ..infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Service for managing user subscriptions.

    Every change to a subscription record goes through :meth:`apply`, which
    runs the pure state machine and persists its outcome.
    """

    def __init__(
        self,
        subscription_repository: SubscriptionRepository,
        user_repository: UserRepository,
        plan_repository: PricingPlanRepository,
        processor: PaymentProcessor,
    ):
        self.subscription_repository = subscription_repository
        self.user_repository = user_repository
        self.plan_repository = plan_repository
        self.processor = processor

    # Reconciliation ---------------------------------------------------------
    def apply(self, event: SubscriptionEvent, now: Optional[datetime] = None) -> Transition:
        """
        Apply a processor event or user command to the stored record.

        Args:
            event: Event from ``vodstream.domain.subscription_state``
            now: Clock override, mostly for tests

        Returns:
            The transition that was persisted

        Raises:
            NotFoundError: A user command targets a user without a subscription
            ConflictError: Reactivation of a subscription that is not pending cancellation
        """
        current = self._load(event)
        # Records are keyed by their owner so concurrent creates collapse onto one document.
        new_id = getattr(event, "user_id", None) if current is None else None
        transition = apply_event(current, event, now, new_id=new_id)
        self._persist(transition)
        if transition.outcome is Outcome.IGNORED:
            logger.info("Ignored %s for unknown subscription", type(event).__name__)
        elif transition.changed:
            logger.info(
                "%s %s subscription %s",
                type(event).__name__,
                transition.outcome.value,
                transition.record.id,
            )
        return transition

    def _load(self, event: SubscriptionEvent) -> Optional[Subscription]:
        user_id = getattr(event, "user_id", None)
        if user_id is not None:
            return self.subscription_repository.get_by_user_id(user_id)
        return self.subscription_repository.get_by_external_id(event.external_subscription_id)

    def _persist(self, transition: Transition) -> None:
        record = transition.record
        if transition.outcome in (Outcome.CREATED, Outcome.UPDATED):
            self.subscription_repository.save(record)
            if transition.outcome is Outcome.CREATED:
                self.user_repository.set_subscription_id(record.user_id, record.id)
        elif transition.outcome is Outcome.DELETED:
            self.subscription_repository.delete(record.id)
            self.user_repository.set_subscription_id(record.user_id, None)

    # Queries ----------------------------------------------------------------
    def get_for_user(self, user_id: str) -> Optional[Subscription]:
        return self.subscription_repository.get_by_user_id(user_id)

    def with_plan(self, subscription: Subscription) -> Tuple[Subscription, Optional[PricingPlan]]:
        """Join a subscription with the pricing plan it references."""
        return subscription, self.plan_repository.get_by_id(subscription.plan_id)

    def count_entitled_for_plan(self, plan_id: str) -> int:
        """Number of active or trialing subscriptions referencing a plan."""
        return self.subscription_repository.count_by_status(ENTITLED_STATUSES, plan_id=plan_id)

    def count_entitled(self) -> int:
        return self.subscription_repository.count_by_status(ENTITLED_STATUSES)

    def refresh(self, user_id: str) -> Optional[Subscription]:
        """Re-read the user's subscription from the processor and store the snapshot."""
        current = self.get_for_user(user_id)
        if current is None:
            return None
        remote = self.processor.retrieve_subscription(current.external_subscription_id)
        snapshot = ProcessorSnapshot.from_processor(remote)
        transition = self.apply(ExternalUpdated(current.external_subscription_id, snapshot))
        return transition.record or current

    # Checkout ---------------------------------------------------------------
    def create_checkout_session(
        self,
        user: User,
        price_id: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """
        Create a hosted checkout session for a pricing plan.

        Args:
            user: Authenticated user starting the checkout
            price_id: Processor price ID of an active plan
            success_url: URL to redirect after successful payment
            cancel_url: URL to redirect if the user cancels

        Returns:
            Session ID and redirect URL

        Raises:
            NotFoundError: No active plan uses ``price_id``
            ProcessorError: A processor call failed
        """
        plan = self.plan_repository.get_by_external_price_id(price_id)
        if not plan or not plan.is_active:
            raise NotFoundError("Pricing plan not found")

        customer_id = user.external_customer_id
        if not customer_id:
            customer_id = self.processor.create_customer(
                email=user.email, name=user.full_name, metadata={"userId": user.id}
            )
            self.user_repository.set_external_customer_id(user.id, customer_id)
            user.external_customer_id = customer_id
            logger.info("Created processor customer for user %s", user.id)

        return self.processor.create_checkout_session(
            customer_id=customer_id,
            price_id=price_id,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"userId": user.id, "pricingPlanId": plan.id},
        )

    def complete_checkout(
        self,
        user_id: str,
        plan_id: str,
        external_subscription_id: str,
        external_customer_id: str,
    ) -> Transition:
        """Record the subscription created by a finished checkout."""
        remote = self.processor.retrieve_subscription(external_subscription_id)
        event = CheckoutCompleted(
            user_id=user_id,
            plan_id=plan_id,
            external_subscription_id=external_subscription_id,
            external_customer_id=external_customer_id,
            snapshot=ProcessorSnapshot.from_processor(remote),
        )
        return self.apply(event)

    # User commands ----------------------------------------------------------
    def cancel(self, user_id: str, immediate: bool = False, reason: Optional[str] = None) -> Transition:
        """Cancel now, or schedule cancellation for the end of the billing period.

        The processor is updated first; a failure there leaves the local
        record untouched.
        """
        current = self.get_for_user(user_id)
        event = UserCancelImmediate(user_id) if immediate else UserCancelAtPeriodEnd(user_id)
        transition = apply_event(current, event)
        if immediate:
            self.processor.cancel_subscription(current.external_subscription_id)
        else:
            self.processor.set_cancel_at_period_end(current.external_subscription_id, True)
        self._persist(transition)
        logger.info(
            "User %s cancelled subscription %s (immediate=%s, reason=%s)",
            user_id,
            current.id,
            immediate,
            reason or "-",
        )
        return transition

    def reactivate(self, user_id: str) -> Transition:
        current = self.get_for_user(user_id)
        transition = apply_event(current, UserReactivate(user_id))
        self.processor.set_cancel_at_period_end(current.external_subscription_id, False)
        self._persist(transition)
        logger.info("User %s reactivated subscription %s", user_id, current.id)
        return transition
