"""Subscription lifecycle state machine.

The local subscription record is a cache of the payment processor's view.
Every transition either copies a processor snapshot or flips a single
flag; nothing here derives billing state on its own. Transitions are pure:
they receive the current record (or ``None`` when absent) and return a
``Transition`` describing what the caller should persist.

Re-applying an event whose effect is already reflected in the record yields
``Outcome.UNCHANGED`` with the original record, which is what makes webhook
redelivery idempotent. Out-of-order delivery is not detected: the last
``ExternalUpdated`` applied wins.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .errors import ConflictError, NotFoundError
from .models.subscription import Subscription, SubscriptionStatus
from vodstream.utils.time import from_timestamp, utcnow


@dataclass(frozen=True, slots=True)
class ProcessorSnapshot:
    """The processor-owned fields of a subscription at one point in time."""

    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool = False
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None

    @classmethod
    def from_processor(cls, obj: Mapping[str, Any]) -> "ProcessorSnapshot":
        """Build a snapshot from a Stripe subscription object.

        Newer Stripe API versions report the billing period on the
        subscription items instead of the subscription itself.
        """
        start = obj.get("current_period_start")
        end = obj.get("current_period_end")
        if start is None or end is None:
            items = (obj.get("items") or {}).get("data") or []
            if items:
                start = start if start is not None else items[0].get("current_period_start")
                end = end if end is not None else items[0].get("current_period_end")
        if start is None or end is None:
            raise ValueError(f"Subscription {obj.get('id')} has no billing period")
        return cls(
            status=SubscriptionStatus(obj["status"]),
            current_period_start=from_timestamp(start),
            current_period_end=from_timestamp(end),
            cancel_at_period_end=bool(obj.get("cancel_at_period_end", False)),
            trial_start=from_timestamp(obj.get("trial_start")),
            trial_end=from_timestamp(obj.get("trial_end")),
        )

    def as_fields(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "current_period_start": self.current_period_start,
            "current_period_end": self.current_period_end,
            "cancel_at_period_end": self.cancel_at_period_end,
            "trial_start": self.trial_start,
            "trial_end": self.trial_end,
        }


# Events -------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CheckoutCompleted:
    user_id: str
    plan_id: str
    external_subscription_id: str
    external_customer_id: str
    snapshot: ProcessorSnapshot


@dataclass(frozen=True, slots=True)
class PaymentSucceeded:
    external_subscription_id: str


@dataclass(frozen=True, slots=True)
class PaymentFailed:
    external_subscription_id: str


@dataclass(frozen=True, slots=True)
class ExternalUpdated:
    external_subscription_id: str
    snapshot: ProcessorSnapshot


@dataclass(frozen=True, slots=True)
class ExternalDeleted:
    external_subscription_id: str


@dataclass(frozen=True, slots=True)
class UserCancelImmediate:
    user_id: str


@dataclass(frozen=True, slots=True)
class UserCancelAtPeriodEnd:
    user_id: str


@dataclass(frozen=True, slots=True)
class UserReactivate:
    user_id: str


SubscriptionEvent = Union[
    CheckoutCompleted,
    PaymentSucceeded,
    PaymentFailed,
    ExternalUpdated,
    ExternalDeleted,
    UserCancelImmediate,
    UserCancelAtPeriodEnd,
    UserReactivate,
]


class Outcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    IGNORED = "ignored"


@dataclass(frozen=True, slots=True)
class Transition:
    outcome: Outcome
    record: Optional[Subscription]

    @property
    def changed(self) -> bool:
        return self.outcome in (Outcome.CREATED, Outcome.UPDATED, Outcome.DELETED)


# Transition functions -----------------------------------------------------

Handler = Callable[[Optional[Subscription], Any, datetime, Optional[str]], Transition]

_IGNORED = Transition(Outcome.IGNORED, None)


def _overwrite(current: Subscription, now: datetime, **changes: Any) -> Transition:
    if all(getattr(current, name) == value for name, value in changes.items()):
        return Transition(Outcome.UNCHANGED, current)
    return Transition(Outcome.UPDATED, dataclasses.replace(current, updated_at=now, **changes))


def _require(current: Optional[Subscription]) -> Subscription:
    if current is None:
        raise NotFoundError("Subscription not found")
    return current


def _checkout_completed(current, event: CheckoutCompleted, now, new_id):
    if current is not None:
        return _overwrite(
            current,
            now,
            plan_id=event.plan_id,
            external_subscription_id=event.external_subscription_id,
            external_customer_id=event.external_customer_id,
            **event.snapshot.as_fields(),
        )
    if not new_id:
        raise ValueError("A record id is required to create a subscription")
    record = Subscription(
        id=new_id,
        user_id=event.user_id,
        plan_id=event.plan_id,
        external_subscription_id=event.external_subscription_id,
        external_customer_id=event.external_customer_id,
        created_at=now,
        updated_at=now,
        **event.snapshot.as_fields(),
    )
    return Transition(Outcome.CREATED, record)


def _payment_succeeded(current, event: PaymentSucceeded, now, new_id):
    if current is None:
        return _IGNORED
    return _overwrite(current, now, status=SubscriptionStatus.ACTIVE)


def _payment_failed(current, event: PaymentFailed, now, new_id):
    if current is None:
        return _IGNORED
    return _overwrite(current, now, status=SubscriptionStatus.PAST_DUE)


def _external_updated(current, event: ExternalUpdated, now, new_id):
    if current is None:
        return _IGNORED
    return _overwrite(current, now, **event.snapshot.as_fields())


def _external_deleted(current, event: ExternalDeleted, now, new_id):
    if current is None:
        return _IGNORED
    return Transition(Outcome.DELETED, current)


def _user_cancel_immediate(current, event: UserCancelImmediate, now, new_id):
    return Transition(Outcome.DELETED, _require(current))


def _user_cancel_at_period_end(current, event: UserCancelAtPeriodEnd, now, new_id):
    return _overwrite(_require(current), now, cancel_at_period_end=True)


def _user_reactivate(current, event: UserReactivate, now, new_id):
    record = _require(current)
    if not record.cancel_at_period_end:
        raise ConflictError("Subscription is not scheduled for cancellation")
    return _overwrite(record, now, cancel_at_period_end=False)


TRANSITIONS: Dict[type, Handler] = {
    CheckoutCompleted: _checkout_completed,
    PaymentSucceeded: _payment_succeeded,
    PaymentFailed: _payment_failed,
    ExternalUpdated: _external_updated,
    ExternalDeleted: _external_deleted,
    UserCancelImmediate: _user_cancel_immediate,
    UserCancelAtPeriodEnd: _user_cancel_at_period_end,
    UserReactivate: _user_reactivate,
}


def apply_event(
    current: Optional[Subscription],
    event: SubscriptionEvent,
    now: Optional[datetime] = None,
    *,
    new_id: Optional[str] = None,
) -> Transition:
    """Compute the transition ``event`` causes on ``current``.

    Raises:
        NotFoundError: A user command targets a user without a subscription
        ConflictError: Reactivation of a subscription that is not pending cancellation
    """
    handler = TRANSITIONS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported subscription event: {type(event).__name__}")
    return handler(current, event, now or utcnow(), new_id)


def is_active(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    """Entitlement predicate consulted by the access gate."""
    return subscription is not None and subscription.is_active(now)
