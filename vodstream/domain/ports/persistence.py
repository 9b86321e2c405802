from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

Document = Dict[str, Any]

FILTER_OPERATORS = ("==", "!=", "in", "<", "<=", ">", ">=", "array_contains_any")


@dataclass(frozen=True, slots=True)
class Filter:
    """A single field predicate applied by the document store."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


def where(field: str, op: str, value: Any) -> Filter:
    return Filter(field, op, value)


# (field, descending)
OrderBy = Tuple[str, bool]


class DocumentStore(Protocol):
    """Abstract storage for schema-less documents grouped by collection."""

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    def find(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Document]:
        ...

    def find_one(self, collection: str, filters: Sequence[Filter]) -> Optional[Document]:
        ...

    def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        ...

    def insert(self, collection: str, data: Mapping[str, Any], doc_id: Optional[str] = None) -> Document:
        ...

    def upsert(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> Document:
        ...

    def update(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Optional[Document]:
        ...

    def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> Optional[Document]:
        ...

    def delete(self, collection: str, doc_id: str) -> bool:
        ...

    def batch_delete(self, collection: str, doc_ids: Iterable[str]) -> int:
        ...

    def batch_update(self, collection: str, doc_ids: Iterable[str], changes: Mapping[str, Any]) -> int:
        ...

    def close(self) -> None:
        ...
