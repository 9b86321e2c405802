"""Repository for Series persistence."""

from typing import Any, Dict, List, Optional

from vodstream.domain.models.series import Series
from vodstream.domain.ports.persistence import Document, DocumentStore, where
from vodstream.utils.time import from_iso, to_iso, utcnow

COLLECTION = "series"


class SeriesRepository:
    """Repository for managing Series documents."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create(self, series: Series) -> Series:
        doc = self.store.insert(COLLECTION, self._series_to_document(series))
        series.id = doc["id"]
        return series

    def get_by_id(self, series_id: str) -> Optional[Series]:
        doc = self.store.get(COLLECTION, series_id)
        return self._document_to_series(doc) if doc else None

    def get_many(self, series_ids: List[str]) -> Dict[str, Series]:
        if not series_ids:
            return {}
        docs = self.store.find(COLLECTION, [where("id", "in", series_ids)])
        return {doc["id"]: self._document_to_series(doc) for doc in docs}

    def list(
        self, is_active: Optional[bool] = None, limit: Optional[int] = None, offset: int = 0
    ) -> List[Series]:
        filters = [] if is_active is None else [where("is_active", "==", is_active)]
        docs = self.store.find(
            COLLECTION, filters, order_by=[("created_at", True)], limit=limit, offset=offset
        )
        return [self._document_to_series(doc) for doc in docs]

    def count(self, is_active: Optional[bool] = None) -> int:
        filters = [] if is_active is None else [where("is_active", "==", is_active)]
        return self.store.count(COLLECTION, filters)

    def update(self, series_id: str, **changes: Any) -> Optional[Series]:
        payload: Dict[str, Any] = dict(changes)
        payload["updated_at"] = to_iso(utcnow())
        doc = self.store.update(COLLECTION, series_id, payload)
        return self._document_to_series(doc) if doc else None

    def delete(self, series_id: str) -> bool:
        return self.store.delete(COLLECTION, series_id)

    @staticmethod
    def _series_to_document(series: Series) -> Document:
        return {
            "title": series.title,
            "description": series.description,
            "thumbnail": series.thumbnail,
            "created_by": series.created_by,
            "is_active": series.is_active,
            "created_at": to_iso(series.created_at),
            "updated_at": to_iso(series.updated_at),
        }

    @staticmethod
    def _document_to_series(doc: Document) -> Series:
        return Series(
            id=doc["id"],
            title=doc["title"],
            description=doc.get("description", ""),
            thumbnail=doc.get("thumbnail", ""),
            created_by=doc.get("created_by", ""),
            is_active=bool(doc.get("is_active", True)),
            created_at=from_iso(doc["created_at"]),
            updated_at=from_iso(doc["updated_at"]),
        )
