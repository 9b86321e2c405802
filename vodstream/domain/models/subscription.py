"""Subscription domain model linking users to processor subscriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from vodstream.utils.time import utcnow


class SubscriptionStatus(str, Enum):
    """Processor-reported subscription status, mirrored verbatim."""

    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"
    PAUSED = "paused"


ENTITLED_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING})


@dataclass(slots=True)
class Subscription:
    """
    A user's subscription as last reported by the payment processor.

    Attributes:
        id: Local record identifier
        user_id: Owning user (one subscription per user)
        plan_id: Referenced pricing plan
        external_subscription_id: Processor subscription ID
        external_customer_id: Processor customer ID
        status: Processor-reported status
        current_period_start: Start of the current billing period
        current_period_end: End of the current billing period
        cancel_at_period_end: Whether cancellation is scheduled for period end
        trial_start: Start of the trial window, if any
        trial_end: End of the trial window, if any
    """

    id: str
    user_id: str
    plan_id: str
    external_subscription_id: str
    external_customer_id: str
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool = False
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.status = SubscriptionStatus(self.status)
        if self.current_period_end < self.current_period_start:
            raise ValueError("current_period_end must not precede current_period_start")

    def inactive_reason(self, now: Optional[datetime] = None) -> Optional[str]:
        """Return why the subscription grants no access, or None when it does."""
        now = now or utcnow()
        if self.status not in ENTITLED_STATUSES:
            return "inactive_status"
        if now >= self.current_period_end:
            return "period_ended"
        # A scheduled cancellation revokes access before the period ends.
        if self.cancel_at_period_end:
            return "cancellation_scheduled"
        return None

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return self.inactive_reason(now) is None

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} user_id={self.user_id} status={self.status.value}>"
