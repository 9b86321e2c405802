"""Repository for VideoProgress persistence."""

from typing import List, Optional

from vodstream.domain.models.video_progress import VideoProgress
from vodstream.domain.ports.persistence import Document, DocumentStore, where
from vodstream.utils.time import from_iso, to_iso

COLLECTION = "video_progress"


class VideoProgressRepository:
    """Repository for managing VideoProgress documents, one per (user, video)."""

    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def record_id(user_id: str, video_id: str) -> str:
        return f"{user_id}_{video_id}"

    def get(self, user_id: str, video_id: str) -> Optional[VideoProgress]:
        doc = self.store.get(COLLECTION, self.record_id(user_id, video_id))
        return self._document_to_progress(doc) if doc else None

    def save(self, progress: VideoProgress) -> VideoProgress:
        self.store.upsert(COLLECTION, progress.id, self._progress_to_document(progress))
        return progress

    def list_by_user(self, user_id: str) -> List[VideoProgress]:
        docs = self.store.find(
            COLLECTION, [where("user_id", "==", user_id)], order_by=[("last_watched_at", True)]
        )
        return [self._document_to_progress(doc) for doc in docs]

    def delete_by_user(self, user_id: str) -> int:
        docs = self.store.find(COLLECTION, [where("user_id", "==", user_id)])
        return self.store.batch_delete(COLLECTION, [doc["id"] for doc in docs])

    @staticmethod
    def _progress_to_document(progress: VideoProgress) -> Document:
        return {
            "user_id": progress.user_id,
            "video_id": progress.video_id,
            "progress": progress.progress,
            "completed": progress.completed,
            "last_watched_at": to_iso(progress.last_watched_at),
            "created_at": to_iso(progress.created_at),
            "updated_at": to_iso(progress.updated_at),
        }

    @staticmethod
    def _document_to_progress(doc: Document) -> VideoProgress:
        return VideoProgress(
            id=doc["id"],
            user_id=doc["user_id"],
            video_id=doc["video_id"],
            progress=float(doc["progress"]),
            completed=bool(doc["completed"]),
            last_watched_at=from_iso(doc["last_watched_at"]),
            created_at=from_iso(doc["created_at"]),
            updated_at=from_iso(doc["updated_at"]),
        )
