"""Tests for WebhookService event routing and signature checks."""

import json
from decimal import Decimal

import pytest

from conftest import make_subscription, sign_payload, stripe_subscription
from vodstream.domain.errors import SignatureInvalidError
from vodstream.domain.models import PricingPlan
from vodstream.domain.models.subscription import SubscriptionStatus
from vodstream.infrastructure.repositories.pricing_plan_repository import PricingPlanRepository
from vodstream.infrastructure.repositories.subscription_repository import SubscriptionRepository
from vodstream.infrastructure.repositories.user_repository import UserRepository
from vodstream.services.subscription_service import SubscriptionService
from vodstream.services.webhook_service import WebhookService, invoice_subscription_id


def event(event_type, obj, event_id="evt_1"):
    return json.dumps({"id": event_id, "object": "event", "type": event_type, "data": {"object": obj}}).encode()


@pytest.fixture
def subscriptions(store):
    return SubscriptionRepository(store)


@pytest.fixture
def plans(store):
    return PricingPlanRepository(store)


@pytest.fixture
def user(store):
    return UserRepository(store).create(email="v@example.com", password_hash="h", first_name="V", last_name="V")


@pytest.fixture
def plan(plans):
    return plans.create(
        PricingPlan(
            id="",
            name="Basic",
            description="",
            price=Decimal("5.00"),
            currency="USD",
            interval="month",
            external_price_id="price_basic",
        )
    )


@pytest.fixture
def service(store, processor, subscriptions, plans):
    subscription_service = SubscriptionService(subscriptions, UserRepository(store), plans, processor)
    return WebhookService(processor, subscription_service, plans)


def deliver(service, payload):
    return service.handle(payload, sign_payload(payload))


class TestSignature:
    def test_missing_header(self, service):
        with pytest.raises(SignatureInvalidError):
            service.handle(event("invoice.payment_failed", {}), None)

    def test_wrong_secret(self, service, subscriptions):
        subscriptions.save(make_subscription())
        payload = event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_123"})
        with pytest.raises(SignatureInvalidError):
            service.handle(payload, sign_payload(payload, secret="whsec_other"))
        assert subscriptions.get_by_external_id("sub_123").status is SubscriptionStatus.ACTIVE

    def test_tampered_payload(self, service):
        payload = event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_123"})
        header = sign_payload(payload)
        with pytest.raises(SignatureInvalidError):
            service.handle(payload.replace(b"sub_123", b"sub_999"), header)


class TestRouting:
    def test_checkout_completed_creates_subscription(self, service, processor, subscriptions, user, plan):
        processor.remote["sub_123"] = stripe_subscription()
        session = {
            "id": "cs_1",
            "object": "checkout.session",
            "subscription": "sub_123",
            "customer": "cus_123",
            "metadata": {"userId": user.id, "pricingPlanId": plan.id},
        }
        result = deliver(service, event("checkout.session.completed", session))
        assert result == {"received": True, "handled": True, "event_type": "checkout.session.completed"}
        record = subscriptions.get_by_user_id(user.id)
        assert record.external_customer_id == "cus_123"
        assert record.plan_id == plan.id

    def test_checkout_without_metadata_is_acknowledged(self, service, subscriptions):
        session = {"id": "cs_1", "subscription": "sub_123", "customer": "cus_123", "metadata": {}}
        result = deliver(service, event("checkout.session.completed", session))
        assert result["handled"] is False
        assert subscriptions.get_by_external_id("sub_123") is None

    def test_checkout_with_unknown_plan_is_acknowledged(self, service, processor, user):
        session = {
            "id": "cs_1",
            "subscription": "sub_123",
            "customer": "cus_123",
            "metadata": {"userId": user.id, "pricingPlanId": "missing"},
        }
        assert deliver(service, event("checkout.session.completed", session))["handled"] is False
        assert processor.called("retrieve_subscription") == []

    def test_invoice_events(self, service, subscriptions):
        subscriptions.save(make_subscription())
        deliver(service, event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_123"}))
        assert subscriptions.get_by_external_id("sub_123").status is SubscriptionStatus.PAST_DUE
        deliver(service, event("invoice.payment_succeeded", {"id": "in_2", "subscription": "sub_123"}, "evt_2"))
        assert subscriptions.get_by_external_id("sub_123").status is SubscriptionStatus.ACTIVE

    def test_invoice_without_subscription(self, service):
        result = deliver(service, event("invoice.payment_succeeded", {"id": "in_1", "subscription": None}))
        assert result["handled"] is False

    def test_subscription_updated(self, service, subscriptions):
        subscriptions.save(make_subscription())
        obj = stripe_subscription(status="unpaid", cancel_at_period_end=True)
        deliver(service, event("customer.subscription.updated", obj))
        record = subscriptions.get_by_external_id("sub_123")
        assert record.status is SubscriptionStatus.UNPAID
        assert record.cancel_at_period_end is True

    def test_subscription_deleted(self, service, subscriptions):
        subscriptions.save(make_subscription())
        deliver(service, event("customer.subscription.deleted", stripe_subscription(status="canceled")))
        assert subscriptions.get_by_external_id("sub_123") is None

    def test_unknown_event_type(self, service):
        result = deliver(service, event("customer.created", {"id": "cus_1"}))
        assert result == {"received": True, "handled": False, "event_type": "customer.created"}

    def test_redelivery_is_idempotent(self, service, subscriptions, store):
        subscriptions.save(make_subscription())
        payload = event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_123"})
        deliver(service, payload)
        first = store.get("subscriptions", "local-1")
        deliver(service, payload)
        assert store.get("subscriptions", "local-1") == first


@pytest.mark.parametrize(
    "invoice,expected",
    [
        ({"subscription": "sub_1"}, "sub_1"),
        ({"subscription": {"id": "sub_2"}}, "sub_2"),
        ({"parent": {"subscription_details": {"subscription": "sub_3"}}}, "sub_3"),
        ({"parent": None}, None),
        ({}, None),
    ],
)
def test_invoice_subscription_id(invoice, expected):
    assert invoice_subscription_id(invoice) == expected
