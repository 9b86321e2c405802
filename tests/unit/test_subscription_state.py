"""Tests for the subscription lifecycle state machine."""

import dataclasses
from datetime import timedelta

import pytest

from conftest import T0, make_subscription, stripe_subscription
from vodstream.domain.errors import ConflictError, NotFoundError
from vodstream.domain.models.subscription import SubscriptionStatus
from vodstream.domain.subscription_state import (
    CheckoutCompleted,
    ExternalDeleted,
    ExternalUpdated,
    Outcome,
    PaymentFailed,
    PaymentSucceeded,
    ProcessorSnapshot,
    UserCancelAtPeriodEnd,
    UserCancelImmediate,
    UserReactivate,
    apply_event,
    is_active,
)

NOW = T0 + timedelta(days=1)


def snapshot(**overrides):
    return ProcessorSnapshot.from_processor(stripe_subscription(**overrides))


class TestIsActive:
    """Entitlement predicate truth table."""

    @pytest.mark.parametrize(
        "status,cancel,now_offset,expected",
        [
            (SubscriptionStatus.ACTIVE, False, timedelta(days=1), True),
            (SubscriptionStatus.TRIALING, False, timedelta(days=1), True),
            (SubscriptionStatus.ACTIVE, True, timedelta(days=1), False),
            (SubscriptionStatus.ACTIVE, False, timedelta(days=30), False),
            (SubscriptionStatus.ACTIVE, False, timedelta(days=31), False),
            (SubscriptionStatus.PAST_DUE, False, timedelta(days=1), False),
            (SubscriptionStatus.CANCELED, False, timedelta(days=1), False),
            (SubscriptionStatus.INCOMPLETE, False, timedelta(days=1), False),
            (SubscriptionStatus.UNPAID, False, timedelta(days=1), False),
            (SubscriptionStatus.PAUSED, False, timedelta(days=1), False),
        ],
    )
    def test_truth_table(self, status, cancel, now_offset, expected):
        record = make_subscription(status=status, cancel_at_period_end=cancel)
        assert is_active(record, T0 + now_offset) is expected

    def test_absent_record_is_inactive(self):
        assert is_active(None, NOW) is False

    def test_inactive_reasons(self):
        assert make_subscription(status=SubscriptionStatus.PAST_DUE).inactive_reason(NOW) == "inactive_status"
        assert make_subscription().inactive_reason(T0 + timedelta(days=40)) == "period_ended"
        assert make_subscription(cancel_at_period_end=True).inactive_reason(NOW) == "cancellation_scheduled"
        assert make_subscription().inactive_reason(NOW) is None


class TestProcessorSnapshot:
    def test_reads_epoch_seconds_as_utc(self):
        snap = snapshot(status="trialing", trial_start=T0, trial_end=T0 + timedelta(days=7))
        assert snap.status is SubscriptionStatus.TRIALING
        assert snap.current_period_start == T0
        assert snap.trial_end == T0 + timedelta(days=7)

    def test_falls_back_to_item_period(self):
        obj = stripe_subscription()
        start, end = obj.pop("current_period_start"), obj.pop("current_period_end")
        obj["items"] = {"data": [{"current_period_start": start, "current_period_end": end}]}
        snap = ProcessorSnapshot.from_processor(obj)
        assert snap.current_period_end == T0 + timedelta(days=30)

    def test_missing_period_is_rejected(self):
        obj = stripe_subscription()
        del obj["current_period_end"]
        with pytest.raises(ValueError):
            ProcessorSnapshot.from_processor(obj)

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValueError):
            snapshot(status="bogus")


class TestCheckoutCompleted:
    def event(self, **snap):
        return CheckoutCompleted("user-1", "plan-1", "sub_123", "cus_123", snapshot(**snap))

    def test_creates_record_when_absent(self):
        transition = apply_event(None, self.event(), NOW, new_id="new-1")
        assert transition.outcome is Outcome.CREATED
        record = transition.record
        assert record.id == "new-1"
        assert record.user_id == "user-1"
        assert record.status is SubscriptionStatus.ACTIVE
        assert record.created_at == NOW

    def test_requires_new_id_to_create(self):
        with pytest.raises(ValueError):
            apply_event(None, self.event(), NOW)

    def test_overwrites_existing_record_and_keeps_id(self):
        current = make_subscription(status=SubscriptionStatus.CANCELED, plan_id="old-plan")
        transition = apply_event(current, self.event(), NOW, new_id="ignored")
        assert transition.outcome is Outcome.UPDATED
        assert transition.record.id == current.id
        assert transition.record.plan_id == "plan-1"
        assert transition.record.status is SubscriptionStatus.ACTIVE

    def test_redelivery_is_unchanged(self):
        created = apply_event(None, self.event(), NOW, new_id="new-1").record
        again = apply_event(created, self.event(), NOW + timedelta(minutes=5))
        assert again.outcome is Outcome.UNCHANGED
        assert again.record is created


class TestProcessorEvents:
    @pytest.mark.parametrize(
        "event",
        [
            PaymentSucceeded("sub_x"),
            PaymentFailed("sub_x"),
            ExternalUpdated("sub_x", snapshot(subscription_id="sub_x")),
            ExternalDeleted("sub_x"),
        ],
    )
    def test_unknown_subscription_is_ignored(self, event):
        transition = apply_event(None, event, NOW)
        assert transition.outcome is Outcome.IGNORED
        assert transition.record is None
        assert not transition.changed

    def test_payment_succeeded_restores_active(self):
        current = make_subscription(status=SubscriptionStatus.PAST_DUE)
        transition = apply_event(current, PaymentSucceeded("sub_123"), NOW)
        assert transition.outcome is Outcome.UPDATED
        assert transition.record.status is SubscriptionStatus.ACTIVE
        assert transition.record.updated_at == NOW

    def test_duplicate_payment_succeeded_is_unchanged(self):
        current = make_subscription()
        transition = apply_event(current, PaymentSucceeded("sub_123"), NOW)
        assert transition.outcome is Outcome.UNCHANGED
        assert transition.record is current

    def test_payment_failed_marks_past_due(self):
        transition = apply_event(make_subscription(), PaymentFailed("sub_123"), NOW)
        assert transition.record.status is SubscriptionStatus.PAST_DUE
        assert not is_active(transition.record, NOW)

    def test_external_update_copies_snapshot(self):
        current = make_subscription()
        renewed = snapshot(start=T0 + timedelta(days=30), end=T0 + timedelta(days=60))
        transition = apply_event(current, ExternalUpdated("sub_123", renewed), NOW)
        assert transition.record.current_period_end == T0 + timedelta(days=60)
        assert transition.record.id == current.id

    def test_identical_external_update_is_unchanged(self):
        current = make_subscription()
        transition = apply_event(current, ExternalUpdated("sub_123", snapshot()), NOW)
        assert transition.outcome is Outcome.UNCHANGED

    def test_external_delete_removes_record(self):
        current = make_subscription()
        transition = apply_event(current, ExternalDeleted("sub_123"), NOW)
        assert transition.outcome is Outcome.DELETED
        assert transition.record is current


class TestUserCommands:
    @pytest.mark.parametrize(
        "event",
        [UserCancelImmediate("user-1"), UserCancelAtPeriodEnd("user-1"), UserReactivate("user-1")],
    )
    def test_commands_require_a_subscription(self, event):
        with pytest.raises(NotFoundError):
            apply_event(None, event, NOW)

    def test_cancel_immediate_deletes(self):
        transition = apply_event(make_subscription(), UserCancelImmediate("user-1"), NOW)
        assert transition.outcome is Outcome.DELETED

    def test_cancel_then_reactivate_restores_access(self):
        current = make_subscription()
        cancelled = apply_event(current, UserCancelAtPeriodEnd("user-1"), NOW).record
        assert cancelled.cancel_at_period_end is True
        assert not is_active(cancelled, NOW)

        reactivated = apply_event(cancelled, UserReactivate("user-1"), NOW).record
        assert reactivated.cancel_at_period_end is False
        assert is_active(reactivated, NOW)
        assert dataclasses.replace(reactivated, updated_at=current.updated_at) == current

    def test_cancel_at_period_end_twice_is_unchanged(self):
        cancelled = make_subscription(cancel_at_period_end=True)
        transition = apply_event(cancelled, UserCancelAtPeriodEnd("user-1"), NOW)
        assert transition.outcome is Outcome.UNCHANGED

    def test_reactivate_without_scheduled_cancellation_conflicts(self):
        with pytest.raises(ConflictError):
            apply_event(make_subscription(), UserReactivate("user-1"), NOW)


def test_trial_period_grants_access_until_period_end():
    trial_end = T0 + timedelta(days=7)
    event = CheckoutCompleted(
        "user-1",
        "plan-1",
        "sub_trial",
        "cus_123",
        snapshot(status="trialing", end=trial_end, trial_start=T0, trial_end=trial_end),
    )
    record = apply_event(None, event, T0, new_id="trial-1").record

    assert is_active(record, T0 + timedelta(days=1))
    assert not is_active(record, T0 + timedelta(days=8))


def test_transitions_do_not_mutate_input():
    current = make_subscription(status=SubscriptionStatus.PAST_DUE)
    before = dataclasses.replace(current)
    apply_event(current, PaymentSucceeded("sub_123"), NOW)
    assert current == before


def test_unsupported_event_type():
    with pytest.raises(TypeError):
        apply_event(make_subscription(), object(), NOW)
