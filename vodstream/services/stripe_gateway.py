"""Stripe payment integration gateway."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import stripe

from ..domain.errors import ProcessorError, SignatureInvalidError
from ..domain.ports.payments import CheckoutSession

logger = logging.getLogger(__name__)


class StripeGateway:
    """Thin wrapper over the Stripe SDK implementing the payment processor port.

    The secret key is passed on every call instead of being assigned to
    ``stripe.api_key``, so several gateways can coexist in one process.
    """

    def __init__(self, secret_key: Optional[str], webhook_secret: Optional[str] = None) -> None:
        if not secret_key:
            logger.warning("STRIPE_SECRET_KEY is not set; payment operations will fail.")
        self._api_key = secret_key
        self._webhook_secret = webhook_secret

    # Subscriptions ----------------------------------------------------------
    def retrieve_subscription(self, external_subscription_id: str) -> Mapping[str, Any]:
        subscription = self._call(
            "retrieve subscription", stripe.Subscription.retrieve, external_subscription_id
        )
        return subscription.to_dict()

    def cancel_subscription(self, external_subscription_id: str) -> None:
        self._call("cancel subscription", stripe.Subscription.cancel, external_subscription_id)

    def set_cancel_at_period_end(self, external_subscription_id: str, cancel: bool) -> None:
        self._call(
            "update subscription",
            stripe.Subscription.modify,
            external_subscription_id,
            cancel_at_period_end=cancel,
        )

    # Customers & checkout ---------------------------------------------------
    def create_customer(self, email: str, name: str, metadata: Dict[str, str]) -> str:
        customer = self._call(
            "create customer", stripe.Customer.create, email=email, name=name, metadata=metadata
        )
        return customer.id

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        session = self._call(
            "create checkout session",
            stripe.checkout.Session.create,
            customer=customer_id,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
        )
        return CheckoutSession(session_id=session.id, url=session.url)

    # Products & prices ------------------------------------------------------
    def create_product(self, name: str, description: str, metadata: Dict[str, str]) -> str:
        params: Dict[str, Any] = {"name": name, "metadata": metadata}
        if description:
            params["description"] = description
        product = self._call("create product", stripe.Product.create, **params)
        return product.id

    def update_product(self, product_id: str, name: str, description: str) -> None:
        params: Dict[str, Any] = {"name": name}
        if description:
            params["description"] = description
        self._call("update product", stripe.Product.modify, product_id, **params)

    def create_price(self, product_id: str, unit_amount: int, currency: str, interval: str) -> str:
        price = self._call(
            "create price",
            stripe.Price.create,
            product=product_id,
            unit_amount=unit_amount,
            currency=currency.lower(),
            recurring={"interval": interval},
        )
        return price.id

    def get_price_product(self, price_id: str) -> str:
        price = self._call("retrieve price", stripe.Price.retrieve, price_id)
        product = price.product
        return product if isinstance(product, str) else product.id

    def set_price_active(self, price_id: str, active: bool) -> None:
        self._call("update price", stripe.Price.modify, price_id, active=active)

    # Webhooks ---------------------------------------------------------------
    def construct_event(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        """Verify the ``Stripe-Signature`` header and decode the event body.

        Raises:
            SignatureInvalidError: Missing secret or header, bad signature or malformed payload
        """
        if not self._webhook_secret:
            raise SignatureInvalidError("Webhook secret is not configured")
        if not signature:
            raise SignatureInvalidError("Missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise SignatureInvalidError("Invalid webhook signature") from exc
        except ValueError as exc:
            raise SignatureInvalidError("Invalid webhook payload") from exc
        return json.loads(payload)

    # ------------------------------------------------------------------------
    def _call(self, action: str, method, *args: Any, **params: Any) -> Any:
        if not self._api_key:
            raise ProcessorError("Stripe is not configured")
        try:
            return method(*args, api_key=self._api_key, **params)
        except stripe.StripeError as exc:
            logger.error("Stripe failed to %s: %s", action, exc)
            raise ProcessorError(f"Payment processor failed to {action}: {exc.user_message or exc}") from exc
