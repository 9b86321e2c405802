"""Video catalog management and viewer-facing queries."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..domain.errors import MediaStorageError, NotFoundError, ValidationError
from ..domain.models.series import Series
from ..domain.models.user import User
from ..domain.models.video import Video
from ..infrastructure.repositories.series_repository import SeriesRepository
from ..infrastructure.repositories.user_repository import UserRepository
from ..infrastructure.repositories.video_repository import VideoRepository
from ..utils.time import ensure_utc, utcnow
from .media_storage import URL_EXPIRES_SECONDS, MediaStorage

logger = logging.getLogger(__name__)


def matches_search(video: Video, term: str) -> bool:
    """Case-insensitive substring match over title, description and tags."""
    needle = term.strip().lower()
    if not needle:
        return True
    haystack = [video.title, video.description, *video.tags]
    return any(needle in (value or "").lower() for value in haystack)


class VideoService:
    def __init__(
        self,
        video_repository: VideoRepository,
        series_repository: SeriesRepository,
        user_repository: UserRepository,
        media_storage: MediaStorage,
    ) -> None:
        self._videos = video_repository
        self._series = series_repository
        self._users = user_repository
        self._media = media_storage

    # Admin ------------------------------------------------------------------
    def create_video(self, uploaded_by: str, **fields: Any) -> Video:
        series_id = fields.get("series_id")
        if series_id and not self._series.get_by_id(series_id):
            raise NotFoundError("Series not found")
        fields["publish_at"] = ensure_utc(fields.get("publish_at") or utcnow())
        fields.setdefault("is_published", True)
        video = Video(id="", uploaded_by=uploaded_by, **fields)
        video = self._videos.create(video)
        logger.info("Created video %s (%s)", video.id, video.title)
        return video

    def list_videos(
        self,
        page: int = 1,
        limit: int = 20,
        series_id: Optional[str] = None,
        is_published: Optional[bool] = None,
    ) -> Tuple[List[Video], int]:
        videos = self._videos.list(
            series_id=series_id, is_published=is_published, limit=limit, offset=(page - 1) * limit
        )
        return videos, self._videos.count(series_id=series_id, is_published=is_published)

    def get_video(self, video_id: str) -> Video:
        video = self._videos.get_by_id(video_id)
        if not video:
            raise NotFoundError("Video not found")
        return video

    def update_video(self, video_id: str, changes: Dict[str, Any]) -> Video:
        updates = {name: value for name, value in changes.items() if value is not None}
        series_id = updates.get("series_id")
        if series_id and not self._series.get_by_id(series_id):
            raise NotFoundError("Series not found")
        video = self._videos.update(video_id, **updates) if updates else self._videos.get_by_id(video_id)
        if not video:
            raise NotFoundError("Video not found")
        return video

    def delete_video(self, video_id: str) -> None:
        video = self.get_video(video_id)
        try:
            self._media.delete_object(video.s3_key)
        except MediaStorageError as exc:
            logger.warning("Failed to delete video %s from S3: %s", video.id, exc)
        self._videos.delete(video.id)

    def increment_views(self, video_id: str) -> int:
        video = self._videos.increment_views(video_id)
        if not video:
            raise NotFoundError("Video not found")
        return video.views

    def count_videos(self) -> int:
        return self._videos.count()

    def join_related(
        self, videos: Iterable[Video], include_uploader: bool = True
    ) -> Tuple[Dict[str, Series], Dict[str, User]]:
        """Fetch the series and uploaders referenced by ``videos``, keyed by id."""
        videos = list(videos)
        series_ids = sorted({video.series_id for video in videos if video.series_id})
        series = self._series.get_many(series_ids)
        uploaders: Dict[str, User] = {}
        if include_uploader:
            for uploader_id in {video.uploaded_by for video in videos if video.uploaded_by}:
                user = self._users.get_by_id(uploader_id)
                if user:
                    uploaders[uploader_id] = user
        return series, uploaders

    # Viewer -----------------------------------------------------------------
    def list_available(
        self,
        page: int = 1,
        limit: int = 20,
        series_id: Optional[str] = None,
        search: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Video], int]:
        videos = self._videos.list_available(now or utcnow(), series_id=series_id)
        if search:
            videos = [video for video in videos if matches_search(video, search)]
        start = (page - 1) * limit
        return videos[start:start + limit], len(videos)

    def list_available_in_series(self, series_id: str, now: Optional[datetime] = None) -> List[Video]:
        videos = self._videos.list_available(now or utcnow(), series_id=series_id)
        return sorted(
            videos,
            key=lambda video: (
                video.season if video.season is not None else 0,
                video.episode_number if video.episode_number is not None else 0,
            ),
        )

    def get_available(self, video_id: str, now: Optional[datetime] = None) -> Video:
        video = self._videos.get_by_id(video_id)
        if not video or not video.is_available(now):
            raise NotFoundError("Video not found or not available")
        return video

    def stream_url(self, video: Video) -> Dict[str, Any]:
        if not video.hls_url:
            raise ValidationError("Video stream not available")
        return {
            "streamUrl": self._media.signed_stream_url(video.hls_url, URL_EXPIRES_SECONDS),
            "expiresInSeconds": URL_EXPIRES_SECONDS,
        }
