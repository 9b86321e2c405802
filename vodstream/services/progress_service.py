"""Viewing progress tracking."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..domain.errors import NotFoundError
from ..domain.models.video_progress import COMPLETION_THRESHOLD, VideoProgress
from ..infrastructure.repositories.video_progress_repository import VideoProgressRepository
from ..infrastructure.repositories.video_repository import VideoRepository
from ..utils.time import utcnow


class ProgressService:
    def __init__(self, progress_repository: VideoProgressRepository, video_repository: VideoRepository) -> None:
        self._progress = progress_repository
        self._videos = video_repository

    def save_progress(
        self, user_id: str, video_id: str, progress: float, now: Optional[datetime] = None
    ) -> VideoProgress:
        """Upsert the (user, video) progress record."""
        if not self._videos.get_by_id(video_id):
            raise NotFoundError("Video not found")
        now = now or utcnow()
        existing = self._progress.get(user_id, video_id)
        record = VideoProgress(
            id=self._progress.record_id(user_id, video_id),
            user_id=user_id,
            video_id=video_id,
            progress=float(progress),
            completed=progress >= COMPLETION_THRESHOLD,
            last_watched_at=now,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        return self._progress.save(record)

    def list_progress(self, user_id: str) -> Tuple[List[VideoProgress], Dict[str, int]]:
        records = self._progress.list_by_user(user_id)
        completed = sum(1 for record in records if record.completed)
        summary = {
            "total": len(records),
            "completed": completed,
            "inProgress": len(records) - completed,
        }
        return records, summary

    def clear_progress(self, user_id: str) -> int:
        return self._progress.delete_by_user(user_id)
