"""Repository for Subscription persistence."""

from typing import Optional, Sequence

from vodstream.domain.models.subscription import Subscription, SubscriptionStatus
from vodstream.domain.ports.persistence import Document, DocumentStore, where
from vodstream.utils.time import from_iso, to_iso

COLLECTION = "subscriptions"


class SubscriptionRepository:
    """Repository for managing Subscription documents."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_by_id(self, subscription_id: str) -> Optional[Subscription]:
        """Get subscription by ID."""
        doc = self.store.get(COLLECTION, subscription_id)
        return self._document_to_subscription(doc) if doc else None

    def get_by_user_id(self, user_id: str) -> Optional[Subscription]:
        """Get the subscription owned by a user."""
        doc = self.store.find_one(COLLECTION, [where("user_id", "==", user_id)])
        return self._document_to_subscription(doc) if doc else None

    def get_by_external_id(self, external_subscription_id: str) -> Optional[Subscription]:
        """Get subscription by processor subscription ID."""
        doc = self.store.find_one(
            COLLECTION, [where("external_subscription_id", "==", external_subscription_id)]
        )
        return self._document_to_subscription(doc) if doc else None

    def save(self, subscription: Subscription) -> Subscription:
        """Insert or overwrite the whole record."""
        self.store.upsert(COLLECTION, subscription.id, self._subscription_to_document(subscription))
        return subscription

    def delete(self, subscription_id: str) -> bool:
        return self.store.delete(COLLECTION, subscription_id)

    def count_by_status(
        self, statuses: Sequence[SubscriptionStatus], plan_id: Optional[str] = None
    ) -> int:
        filters = [where("status", "in", [status.value for status in statuses])]
        if plan_id:
            filters.append(where("plan_id", "==", plan_id))
        return self.store.count(COLLECTION, filters)

    @staticmethod
    def _subscription_to_document(subscription: Subscription) -> Document:
        return {
            "user_id": subscription.user_id,
            "plan_id": subscription.plan_id,
            "external_subscription_id": subscription.external_subscription_id,
            "external_customer_id": subscription.external_customer_id,
            "status": subscription.status.value,
            "current_period_start": to_iso(subscription.current_period_start),
            "current_period_end": to_iso(subscription.current_period_end),
            "cancel_at_period_end": subscription.cancel_at_period_end,
            "trial_start": to_iso(subscription.trial_start),
            "trial_end": to_iso(subscription.trial_end),
            "created_at": to_iso(subscription.created_at),
            "updated_at": to_iso(subscription.updated_at),
        }

    @staticmethod
    def _document_to_subscription(doc: Document) -> Subscription:
        return Subscription(
            id=doc["id"],
            user_id=doc["user_id"],
            plan_id=doc["plan_id"],
            external_subscription_id=doc["external_subscription_id"],
            external_customer_id=doc["external_customer_id"],
            status=SubscriptionStatus(doc["status"]),
            current_period_start=from_iso(doc["current_period_start"]),
            current_period_end=from_iso(doc["current_period_end"]),
            cancel_at_period_end=bool(doc.get("cancel_at_period_end", False)),
            trial_start=from_iso(doc.get("trial_start")),
            trial_end=from_iso(doc.get("trial_end")),
            created_at=from_iso(doc["created_at"]),
            updated_at=from_iso(doc["updated_at"]),
        )
