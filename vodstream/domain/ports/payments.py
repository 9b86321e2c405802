from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    session_id: str
    url: str


class PaymentProcessor(Protocol):
    """Hosted billing system that owns subscription truth."""

    def retrieve_subscription(self, external_subscription_id: str) -> Mapping[str, Any]:
        ...

    def cancel_subscription(self, external_subscription_id: str) -> None:
        ...

    def set_cancel_at_period_end(self, external_subscription_id: str, cancel: bool) -> None:
        ...

    def create_customer(self, email: str, name: str, metadata: Dict[str, str]) -> str:
        ...

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        ...

    def create_product(self, name: str, description: str, metadata: Dict[str, str]) -> str:
        ...

    def update_product(self, product_id: str, name: str, description: str) -> None:
        ...

    def create_price(self, product_id: str, unit_amount: int, currency: str, interval: str) -> str:
        ...

    def get_price_product(self, price_id: str) -> str:
        ...

    def set_price_active(self, price_id: str, active: bool) -> None:
        ...

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Mapping[str, Any]:
        ...
