"""Repository for User persistence."""

from typing import Any, Dict, List, Optional

from vodstream.domain.models.user import ROLE_USER, User
from vodstream.domain.ports.persistence import Document, DocumentStore, where
from vodstream.utils.time import from_iso, to_iso, utcnow

COLLECTION = "users"


class UserRepository:
    """Repository for managing User documents."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: str = ROLE_USER,
    ) -> User:
        """Create a new user."""
        now = utcnow()
        user = User(
            id="",
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            created_at=now,
            updated_at=now,
        )
        doc = self.store.insert(COLLECTION, self._user_to_document(user))
        user.id = doc["id"]
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        doc = self.store.get(COLLECTION, user_id)
        return self._document_to_user(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        doc = self.store.find_one(COLLECTION, [where("email", "==", email)])
        return self._document_to_user(doc) if doc else None

    def get_by_external_customer_id(self, customer_id: str) -> Optional[User]:
        doc = self.store.find_one(COLLECTION, [where("external_customer_id", "==", customer_id)])
        return self._document_to_user(doc) if doc else None

    def update(self, user_id: str, **changes: Any) -> Optional[User]:
        """Update selected fields and bump ``updated_at``."""
        payload: Dict[str, Any] = dict(changes)
        payload["updated_at"] = to_iso(utcnow())
        doc = self.store.update(COLLECTION, user_id, payload)
        return self._document_to_user(doc) if doc else None

    def set_external_customer_id(self, user_id: str, customer_id: str) -> Optional[User]:
        return self.update(user_id, external_customer_id=customer_id)

    def set_subscription_id(self, user_id: str, subscription_id: Optional[str]) -> Optional[User]:
        return self.update(user_id, subscription_id=subscription_id)

    def list_by_role(self, role: str, limit: Optional[int] = None, offset: int = 0) -> List[User]:
        docs = self.store.find(
            COLLECTION,
            [where("role", "==", role)],
            order_by=[("created_at", True)],
            limit=limit,
            offset=offset,
        )
        return [self._document_to_user(doc) for doc in docs]

    def count_by_role(self, role: str) -> int:
        return self.store.count(COLLECTION, [where("role", "==", role)])

    def delete(self, user_id: str) -> bool:
        return self.store.delete(COLLECTION, user_id)

    @staticmethod
    def _user_to_document(user: User) -> Document:
        return {
            "email": user.email,
            "password_hash": user.password_hash,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "role": user.role,
            "external_customer_id": user.external_customer_id,
            "subscription_id": user.subscription_id,
            "created_at": to_iso(user.created_at),
            "updated_at": to_iso(user.updated_at),
        }

    @staticmethod
    def _document_to_user(doc: Document) -> User:
        return User(
            id=doc["id"],
            email=doc["email"],
            password_hash=doc["password_hash"],
            first_name=doc.get("first_name", ""),
            last_name=doc.get("last_name", ""),
            role=doc.get("role", ROLE_USER),
            external_customer_id=doc.get("external_customer_id"),
            subscription_id=doc.get("subscription_id"),
            created_at=from_iso(doc["created_at"]),
            updated_at=from_iso(doc["updated_at"]),
        )
