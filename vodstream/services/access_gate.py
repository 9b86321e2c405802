"""Entitlement checks for protected viewer actions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..domain.models.subscription import Subscription
from ..infrastructure.repositories.subscription_repository import SubscriptionRepository
from ..utils.time import utcnow

NO_SUBSCRIPTION = "no_subscription"


@dataclass(frozen=True, slots=True)
class AccessDecision:
    allowed: bool
    reason: Optional[str]
    subscription: Optional[Subscription] = None


class AccessGate:
    """Reads the local subscription record and decides whether a user may stream.

    The check never writes and fails closed when no record exists.
    """

    def __init__(self, subscription_repository: SubscriptionRepository) -> None:
        self._subscriptions = subscription_repository

    def check_access(self, user_id: str, now: Optional[datetime] = None) -> AccessDecision:
        subscription = self._subscriptions.get_by_user_id(user_id)
        if subscription is None:
            return AccessDecision(False, NO_SUBSCRIPTION)
        reason = subscription.inactive_reason(now or utcnow())
        return AccessDecision(reason is None, reason, subscription)

    def has_access(self, user_id: str, now: Optional[datetime] = None) -> bool:
        return self.check_access(user_id, now).allowed
