"""Repository for Video persistence."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from vodstream.domain.models.video import Video
from vodstream.domain.ports.persistence import Document, DocumentStore, Filter, where
from vodstream.utils.time import from_iso, to_iso, utcnow

COLLECTION = "videos"

_DATETIME_FIELDS = ("publish_at", "created_at", "updated_at")


class VideoRepository:
    """Repository for managing Video documents."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create(self, video: Video) -> Video:
        doc = self.store.insert(COLLECTION, self._video_to_document(video))
        video.id = doc["id"]
        return video

    def get_by_id(self, video_id: str) -> Optional[Video]:
        doc = self.store.get(COLLECTION, video_id)
        return self._document_to_video(doc) if doc else None

    def list(
        self,
        series_id: Optional[str] = None,
        is_published: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Video]:
        """Admin listing, newest first."""
        filters = self._filters(series_id=series_id, is_published=is_published)
        docs = self.store.find(
            COLLECTION, filters, order_by=[("created_at", True)], limit=limit, offset=offset
        )
        return [self._document_to_video(doc) for doc in docs]

    def count(self, series_id: Optional[str] = None, is_published: Optional[bool] = None) -> int:
        return self.store.count(
            COLLECTION, self._filters(series_id=series_id, is_published=is_published)
        )

    def list_available(self, now: datetime, series_id: Optional[str] = None) -> List[Video]:
        """Published, active videos whose publish date has passed, newest release first."""
        filters = self._available_filters(now, series_id)
        docs = self.store.find(COLLECTION, filters, order_by=[("publish_at", True)])
        return [self._document_to_video(doc) for doc in docs]

    def count_available(self, now: datetime, series_id: Optional[str] = None) -> int:
        return self.store.count(COLLECTION, self._available_filters(now, series_id))

    def list_by_series(self, series_id: str) -> List[Video]:
        docs = self.store.find(
            COLLECTION,
            [where("series_id", "==", series_id)],
            order_by=[("season", False), ("episode_number", False)],
        )
        return [self._document_to_video(doc) for doc in docs]

    def count_by_series(self, series_id: str) -> int:
        return self.store.count(COLLECTION, [where("series_id", "==", series_id)])

    def update(self, video_id: str, **changes: Any) -> Optional[Video]:
        payload: Dict[str, Any] = dict(changes)
        for name in _DATETIME_FIELDS:
            if isinstance(payload.get(name), datetime):
                payload[name] = to_iso(payload[name])
        payload["updated_at"] = to_iso(utcnow())
        doc = self.store.update(COLLECTION, video_id, payload)
        return self._document_to_video(doc) if doc else None

    def increment_views(self, video_id: str) -> Optional[Video]:
        doc = self.store.increment(COLLECTION, video_id, "views", 1)
        return self._document_to_video(doc) if doc else None

    def delete(self, video_id: str) -> bool:
        return self.store.delete(COLLECTION, video_id)

    @staticmethod
    def _filters(series_id: Optional[str], is_published: Optional[bool]) -> List[Filter]:
        filters = []
        if series_id:
            filters.append(where("series_id", "==", series_id))
        if is_published is not None:
            filters.append(where("is_published", "==", is_published))
        return filters

    @staticmethod
    def _available_filters(now: datetime, series_id: Optional[str]) -> Sequence[Filter]:
        filters = [
            where("is_published", "==", True),
            where("is_active", "==", True),
            where("publish_at", "<=", to_iso(now)),
        ]
        if series_id:
            filters.append(where("series_id", "==", series_id))
        return filters

    @staticmethod
    def _video_to_document(video: Video) -> Document:
        return {
            "title": video.title,
            "description": video.description,
            "thumbnail": video.thumbnail,
            "duration": video.duration,
            "s3_key": video.s3_key,
            "hls_url": video.hls_url,
            "uploaded_by": video.uploaded_by,
            "publish_at": to_iso(video.publish_at),
            "series_id": video.series_id,
            "season": video.season,
            "episode_number": video.episode_number,
            "is_published": video.is_published,
            "is_active": video.is_active,
            "tags": list(video.tags),
            "views": video.views,
            "created_at": to_iso(video.created_at),
            "updated_at": to_iso(video.updated_at),
        }

    @staticmethod
    def _document_to_video(doc: Document) -> Video:
        return Video(
            id=doc["id"],
            title=doc["title"],
            description=doc.get("description", ""),
            thumbnail=doc.get("thumbnail", ""),
            duration=float(doc.get("duration", 0)),
            s3_key=doc["s3_key"],
            hls_url=doc.get("hls_url", ""),
            uploaded_by=doc.get("uploaded_by", ""),
            publish_at=from_iso(doc["publish_at"]),
            series_id=doc.get("series_id"),
            season=doc.get("season"),
            episode_number=doc.get("episode_number"),
            is_published=bool(doc.get("is_published", True)),
            is_active=bool(doc.get("is_active", True)),
            tags=list(doc.get("tags") or []),
            views=int(doc.get("views", 0)),
            created_at=from_iso(doc["created_at"]),
            updated_at=from_iso(doc["updated_at"]),
        )
