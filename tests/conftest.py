"""Shared fixtures: in-memory store, a fake payment processor and an API client."""

import hashlib
import hmac
import itertools
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from vodstream.core.app_factory import build_container, create_application
from vodstream.core.config import Settings
from vodstream.domain.errors import ProcessorError
from vodstream.domain.models.subscription import Subscription, SubscriptionStatus
from vodstream.domain.ports.payments import CheckoutSession
from vodstream.infrastructure.persistence.sqlite import SQLiteDocumentStore
from vodstream.services.email_service import EmailService
from vodstream.services.media_storage import MediaStorage
from vodstream.services.stripe_gateway import StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def epoch(value: datetime) -> int:
    return int(value.timestamp())


def stripe_subscription(
    subscription_id: str = "sub_123",
    status: str = "active",
    start: datetime = T0,
    end: datetime = T0 + timedelta(days=30),
    cancel_at_period_end: bool = False,
    trial_start: Optional[datetime] = None,
    trial_end: Optional[datetime] = None,
) -> Dict[str, Any]:
    """A Stripe subscription object as the API returns it."""
    return {
        "id": subscription_id,
        "object": "subscription",
        "status": status,
        "current_period_start": epoch(start),
        "current_period_end": epoch(end),
        "cancel_at_period_end": cancel_at_period_end,
        "trial_start": epoch(trial_start) if trial_start else None,
        "trial_end": epoch(trial_end) if trial_end else None,
    }


def make_subscription(
    user_id: str = "user-1",
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    start: datetime = T0,
    end: datetime = T0 + timedelta(days=30),
    cancel_at_period_end: bool = False,
    subscription_id: str = "local-1",
    external_id: str = "sub_123",
    plan_id: str = "plan-1",
) -> Subscription:
    return Subscription(
        id=subscription_id,
        user_id=user_id,
        plan_id=plan_id,
        external_subscription_id=external_id,
        external_customer_id="cus_123",
        status=status,
        current_period_start=start,
        current_period_end=end,
        cancel_at_period_end=cancel_at_period_end,
        created_at=start,
        updated_at=start,
    )


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a ``Stripe-Signature`` header for ``payload``."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class FakeProcessor:
    """In-memory stand-in for Stripe.

    Webhook verification is delegated to a real gateway so signatures are
    checked exactly as in production.
    """

    def __init__(self, webhook_secret: Optional[str] = WEBHOOK_SECRET) -> None:
        self.remote: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.fail_on: set = set()
        self._ids = itertools.count(1)
        self._verifier = StripeGateway(None, webhook_secret)

    def _record(self, name: str, *args: Any) -> None:
        if name in self.fail_on:
            raise ProcessorError(f"{name} failed")
        self.calls.append((name, args))

    def called(self, name: str) -> List[tuple]:
        return [args for call, args in self.calls if call == name]

    def retrieve_subscription(self, external_subscription_id: str) -> Dict[str, Any]:
        self._record("retrieve_subscription", external_subscription_id)
        return self.remote[external_subscription_id]

    def cancel_subscription(self, external_subscription_id: str) -> None:
        self._record("cancel_subscription", external_subscription_id)

    def set_cancel_at_period_end(self, external_subscription_id: str, cancel: bool) -> None:
        self._record("set_cancel_at_period_end", external_subscription_id, cancel)
        if external_subscription_id in self.remote:
            self.remote[external_subscription_id]["cancel_at_period_end"] = cancel

    def create_customer(self, email: str, name: str, metadata: Dict[str, str]) -> str:
        self._record("create_customer", email, name, metadata)
        return f"cus_{next(self._ids)}"

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        self._record("create_checkout_session", customer_id, price_id, metadata)
        session_id = f"cs_{next(self._ids)}"
        return CheckoutSession(session_id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    def create_product(self, name: str, description: str, metadata: Dict[str, str]) -> str:
        self._record("create_product", name, description, metadata)
        return f"prod_{next(self._ids)}"

    def update_product(self, product_id: str, name: str, description: str) -> None:
        self._record("update_product", product_id, name, description)

    def create_price(self, product_id: str, unit_amount: int, currency: str, interval: str) -> str:
        self._record("create_price", product_id, unit_amount, currency, interval)
        return f"price_{next(self._ids)}"

    def get_price_product(self, price_id: str) -> str:
        self._record("get_price_product", price_id)
        return "prod_existing"

    def set_price_active(self, price_id: str, active: bool) -> None:
        self._record("set_price_active", price_id, active)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        return self._verifier.construct_event(payload, signature)


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    store = SQLiteDocumentStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def settings():
    settings = Settings()
    settings.database_path = ":memory:"
    settings.jwt_secret = "test-access-secret"
    settings.jwt_refresh_secret = "test-refresh-secret"
    settings.admin_token_secret = "test-admin-secret"
    settings.stripe_secret_key = None
    settings.stripe_webhook_secret = WEBHOOK_SECRET
    settings.frontend_base_url = "http://frontend.test"
    return settings


@pytest.fixture
def media_storage():
    media = MagicMock(spec=MediaStorage)
    media.signed_stream_url.return_value = "https://cdn.test/hls/master.m3u8?Signature=abc"
    media.create_upload_url.return_value = {
        "uploadUrl": "https://bucket.s3.test/videos/1-clip.mp4",
        "key": "videos/1-clip.mp4",
        "expiresIn": 3600,
    }
    return media


@pytest.fixture
def email_service():
    email = MagicMock(spec=EmailService)
    email.send_release_reminder.return_value = True
    return email


@pytest.fixture
def container(settings, store, processor, media_storage, email_service):
    return build_container(
        settings,
        store=store,
        processor=processor,
        media_storage=media_storage,
        email_service=email_service,
    )


@pytest.fixture
def client(settings, container):
    """API client wired to the test container; the lifespan is not run."""
    app = create_application(settings)
    app.state.container = container
    return TestClient(app)


@pytest.fixture
def admin_headers(client, container):
    container.admin_auth_service.ensure_default_admin("admin@example.com", "admin-pass")
    response = client.post("/api/admin/login", json={"email": "admin@example.com", "password": "admin-pass"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def viewer(client):
    """Register a viewer and return ``(user_json, headers)``."""
    response = client.post(
        "/api/auth/register",
        json={"email": "viewer@example.com", "password": "secret-pw", "firstName": "Vera", "lastName": "Viewer"},
    )
    assert response.status_code == 201
    body = response.json()
    return body["user"], {"Authorization": f"Bearer {body['accessToken']}"}
