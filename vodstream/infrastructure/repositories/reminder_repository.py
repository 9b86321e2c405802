"""Repository for Reminder persistence."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from vodstream.domain.models.reminder import Reminder
from vodstream.domain.ports.persistence import Document, DocumentStore, Filter, where
from vodstream.utils.time import from_iso, to_iso, utcnow

COLLECTION = "reminders"


class ReminderRepository:
    """Repository for managing Reminder documents."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create(self, reminder: Reminder) -> Reminder:
        doc = self.store.insert(COLLECTION, self._reminder_to_document(reminder))
        reminder.id = doc["id"]
        return reminder

    def get_by_id(self, reminder_id: str) -> Optional[Reminder]:
        doc = self.store.get(COLLECTION, reminder_id)
        return self._document_to_reminder(doc) if doc else None

    def get_for_user_video(self, user_id: str, video_id: str) -> Optional[Reminder]:
        doc = self.store.find_one(
            COLLECTION, [where("user_id", "==", user_id), where("video_id", "==", video_id)]
        )
        return self._document_to_reminder(doc) if doc else None

    def list_by_user(
        self,
        user_id: str,
        is_notified: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Reminder]:
        docs = self.store.find(
            COLLECTION,
            self._user_filters(user_id, is_notified),
            order_by=[("reminder_date", False)],
            limit=limit,
            offset=offset,
        )
        return [self._document_to_reminder(doc) for doc in docs]

    def count_by_user(self, user_id: str, is_notified: Optional[bool] = None) -> int:
        return self.store.count(COLLECTION, self._user_filters(user_id, is_notified))

    def list_pending_for_user(self, user_id: str, now: datetime) -> List[Reminder]:
        """Unnotified reminders whose date has already passed."""
        docs = self.store.find(
            COLLECTION,
            [
                where("user_id", "==", user_id),
                where("is_notified", "==", False),
                where("reminder_date", "<=", to_iso(now)),
            ],
            order_by=[("reminder_date", False)],
        )
        return [self._document_to_reminder(doc) for doc in docs]

    def list_due(self, now: datetime) -> List[Reminder]:
        docs = self.store.find(
            COLLECTION,
            [where("is_notified", "==", False), where("reminder_date", "<=", to_iso(now))],
            order_by=[("reminder_date", False)],
        )
        return [self._document_to_reminder(doc) for doc in docs]

    def mark_notified(self, reminder_ids: Sequence[str]) -> int:
        """Flag a set of reminders as notified in a single batch."""
        return self.store.batch_update(
            COLLECTION, reminder_ids, {"is_notified": True, "updated_at": to_iso(utcnow())}
        )

    def update(self, reminder_id: str, **changes: Any) -> Optional[Reminder]:
        payload: Dict[str, Any] = dict(changes)
        if isinstance(payload.get("reminder_date"), datetime):
            payload["reminder_date"] = to_iso(payload["reminder_date"])
        payload["updated_at"] = to_iso(utcnow())
        doc = self.store.update(COLLECTION, reminder_id, payload)
        return self._document_to_reminder(doc) if doc else None

    def delete(self, reminder_id: str) -> bool:
        return self.store.delete(COLLECTION, reminder_id)

    @staticmethod
    def _user_filters(user_id: str, is_notified: Optional[bool]) -> List[Filter]:
        filters = [where("user_id", "==", user_id)]
        if is_notified is not None:
            filters.append(where("is_notified", "==", is_notified))
        return filters

    @staticmethod
    def _reminder_to_document(reminder: Reminder) -> Document:
        return {
            "user_id": reminder.user_id,
            "video_id": reminder.video_id,
            "reminder_date": to_iso(reminder.reminder_date),
            "notification_type": reminder.notification_type,
            "is_notified": reminder.is_notified,
            "created_at": to_iso(reminder.created_at),
            "updated_at": to_iso(reminder.updated_at),
        }

    @staticmethod
    def _document_to_reminder(doc: Document) -> Reminder:
        return Reminder(
            id=doc["id"],
            user_id=doc["user_id"],
            video_id=doc["video_id"],
            reminder_date=from_iso(doc["reminder_date"]),
            notification_type=doc.get("notification_type", "email"),
            is_notified=bool(doc.get("is_notified", False)),
            created_at=from_iso(doc["created_at"]),
            updated_at=from_iso(doc["updated_at"]),
        )
