"""Tests for PricingService keeping plans and Stripe prices in step."""

from decimal import Decimal

import pytest

from conftest import make_subscription
from vodstream.domain.errors import ConflictError, NotFoundError
from vodstream.domain.models.subscription import SubscriptionStatus
from vodstream.infrastructure.repositories.pricing_plan_repository import PricingPlanRepository
from vodstream.infrastructure.repositories.subscription_repository import SubscriptionRepository
from vodstream.services.pricing_service import PricingService


@pytest.fixture
def plans(store):
    return PricingPlanRepository(store)


@pytest.fixture
def subscriptions(store):
    return SubscriptionRepository(store)


@pytest.fixture
def service(plans, subscriptions, processor):
    return PricingService(plans, subscriptions, processor)


@pytest.fixture
def plan(service):
    return service.create_plan(
        name="Premium",
        description="4K streaming",
        price=Decimal("19.99"),
        interval="month",
        features=["4K", "4 screens"],
        max_video_quality="4k",
        concurrent_streams=4,
    )


def test_create_plan_creates_product_and_price(plan, processor, plans):
    (name, _, metadata), = processor.called("create_product")
    assert name == "Premium"
    assert metadata == {"maxVideoQuality": "4k", "concurrentStreams": "4"}
    (_, unit_amount, currency, interval), = processor.called("create_price")
    assert (unit_amount, currency, interval) == (1999, "USD", "month")
    assert plans.get_by_id(plan.id).external_price_id == plan.external_price_id


def test_update_name_touches_product_only(service, plan, processor):
    updated = service.update_plan(plan.id, {"name": "Premium+"})
    assert updated.name == "Premium+"
    assert processor.called("update_product") == [("prod_existing", "Premium+", "4K streaming")]
    assert len(processor.called("create_price")) == 1


def test_update_price_replaces_stripe_price(service, plan, processor):
    old_price_id = plan.external_price_id
    updated = service.update_plan(plan.id, {"price": Decimal("24.99")})

    assert updated.price == Decimal("24.99")
    assert updated.external_price_id != old_price_id
    assert processor.called("create_price")[-1][1] == 2499
    assert processor.called("set_price_active") == [(old_price_id, False)]


def test_update_with_same_price_keeps_stripe_price(service, plan, processor):
    service.update_plan(plan.id, {"price": Decimal("19.99")})
    assert len(processor.called("create_price")) == 1


def test_update_missing_plan(service):
    with pytest.raises(NotFoundError):
        service.update_plan("missing", {"name": "x"})


def test_delete_refuses_plan_with_entitled_subscribers(service, plan, subscriptions, plans):
    subscriptions.save(make_subscription(plan_id=plan.id, status=SubscriptionStatus.TRIALING))
    with pytest.raises(ConflictError):
        service.delete_plan(plan.id)
    assert plans.get_by_id(plan.id) is not None


def test_delete_allows_plan_with_lapsed_subscribers(service, plan, subscriptions, plans, processor):
    subscriptions.save(make_subscription(plan_id=plan.id, status=SubscriptionStatus.CANCELED))
    service.delete_plan(plan.id)
    assert plans.get_by_id(plan.id) is None
    assert processor.called("set_price_active") == [(plan.external_price_id, False)]


def test_delete_survives_archive_failure(service, plan, plans, processor):
    processor.fail_on.add("set_price_active")
    service.delete_plan(plan.id)
    assert plans.get_by_id(plan.id) is None


def test_deactivate_and_list(service, plan):
    service.set_active(plan.id, False)
    assert service.list_plans(active=True) == []
    assert [item.id for item in service.list_plans(active=False)] == [plan.id]
