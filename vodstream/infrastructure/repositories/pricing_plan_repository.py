"""Repository for PricingPlan persistence."""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from vodstream.domain.models.pricing_plan import PricingPlan
from vodstream.domain.ports.persistence import Document, DocumentStore, where
from vodstream.utils.time import from_iso, to_iso, utcnow

COLLECTION = "pricing_plans"

_CENTS = Decimal("0.01")


class PricingPlanRepository:
    """Repository for managing PricingPlan documents."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create(self, plan: PricingPlan) -> PricingPlan:
        doc = self.store.insert(COLLECTION, self._plan_to_document(plan))
        plan.id = doc["id"]
        return plan

    def get_by_id(self, plan_id: str) -> Optional[PricingPlan]:
        doc = self.store.get(COLLECTION, plan_id)
        return self._document_to_plan(doc) if doc else None

    def get_by_external_price_id(self, price_id: str) -> Optional[PricingPlan]:
        doc = self.store.find_one(COLLECTION, [where("external_price_id", "==", price_id)])
        return self._document_to_plan(doc) if doc else None

    def get_by_name(self, name: str) -> Optional[PricingPlan]:
        doc = self.store.find_one(COLLECTION, [where("name", "==", name)])
        return self._document_to_plan(doc) if doc else None

    def list(self, is_active: Optional[bool] = None, interval: Optional[str] = None) -> List[PricingPlan]:
        """List plans ordered by price ascending."""
        filters = []
        if is_active is not None:
            filters.append(where("is_active", "==", is_active))
        if interval:
            filters.append(where("interval", "==", interval))
        docs = self.store.find(COLLECTION, filters, order_by=[("price", False)])
        return [self._document_to_plan(doc) for doc in docs]

    def update(self, plan_id: str, **changes: Any) -> Optional[PricingPlan]:
        payload: Dict[str, Any] = dict(changes)
        if "price" in payload:
            payload["price"] = float(payload["price"])
        payload["updated_at"] = to_iso(utcnow())
        doc = self.store.update(COLLECTION, plan_id, payload)
        return self._document_to_plan(doc) if doc else None

    def delete(self, plan_id: str) -> bool:
        return self.store.delete(COLLECTION, plan_id)

    @staticmethod
    def _plan_to_document(plan: PricingPlan) -> Document:
        return {
            "name": plan.name,
            "description": plan.description,
            # Stored as a number so listings sort numerically.
            "price": float(plan.price),
            "currency": plan.currency,
            "interval": plan.interval,
            "external_price_id": plan.external_price_id,
            "features": list(plan.features),
            "max_video_quality": plan.max_video_quality,
            "concurrent_streams": plan.concurrent_streams,
            "is_active": plan.is_active,
            "created_at": to_iso(plan.created_at),
            "updated_at": to_iso(plan.updated_at),
        }

    @staticmethod
    def _document_to_plan(doc: Document) -> PricingPlan:
        return PricingPlan(
            id=doc["id"],
            name=doc["name"],
            description=doc.get("description", ""),
            price=Decimal(str(doc["price"])).quantize(_CENTS),
            currency=doc["currency"],
            interval=doc["interval"],
            external_price_id=doc["external_price_id"],
            features=list(doc.get("features") or []),
            max_video_quality=doc.get("max_video_quality", "1080p"),
            concurrent_streams=int(doc.get("concurrent_streams", 2)),
            is_active=bool(doc.get("is_active", True)),
            created_at=from_iso(doc["created_at"]),
            updated_at=from_iso(doc["updated_at"]),
        )
