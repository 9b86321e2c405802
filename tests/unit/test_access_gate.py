"""Tests for the streaming access gate."""

from datetime import timedelta

import pytest

from conftest import T0, make_subscription
from vodstream.domain.models.subscription import SubscriptionStatus
from vodstream.infrastructure.repositories.subscription_repository import SubscriptionRepository
from vodstream.services.access_gate import NO_SUBSCRIPTION, AccessGate


@pytest.fixture
def repository(store):
    return SubscriptionRepository(store)


@pytest.fixture
def gate(repository):
    return AccessGate(repository)


def test_no_subscription_fails_closed(gate):
    decision = gate.check_access("user-1", T0)
    assert decision.allowed is False
    assert decision.reason == NO_SUBSCRIPTION
    assert decision.subscription is None


def test_active_subscription_is_allowed(gate, repository):
    repository.save(make_subscription())
    decision = gate.check_access("user-1", T0 + timedelta(days=1))
    assert decision.allowed is True
    assert decision.reason is None
    assert decision.subscription.id == "local-1"


@pytest.mark.parametrize(
    "kwargs,now,reason",
    [
        ({"status": SubscriptionStatus.PAST_DUE}, T0 + timedelta(days=1), "inactive_status"),
        ({}, T0 + timedelta(days=31), "period_ended"),
        ({"cancel_at_period_end": True}, T0 + timedelta(days=1), "cancellation_scheduled"),
    ],
)
def test_denial_reasons(gate, repository, kwargs, now, reason):
    repository.save(make_subscription(**kwargs))
    decision = gate.check_access("user-1", now)
    assert decision.allowed is False
    assert decision.reason == reason


def test_check_does_not_write(gate, repository, store):
    repository.save(make_subscription(status=SubscriptionStatus.PAST_DUE))
    before = store.get("subscriptions", "local-1")
    gate.has_access("user-1", T0 + timedelta(days=1))
    assert store.get("subscriptions", "local-1") == before


def test_other_users_subscription_is_not_used(gate, repository):
    repository.save(make_subscription(user_id="someone-else"))
    assert gate.has_access("user-1", T0 + timedelta(days=1)) is False
