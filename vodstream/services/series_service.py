"""Series management and viewer-facing series queries."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..domain.errors import ConflictError, NotFoundError
from ..domain.models.series import Series
from ..domain.models.video import Video
from ..infrastructure.repositories.series_repository import SeriesRepository
from ..infrastructure.repositories.video_repository import VideoRepository
from ..utils.time import utcnow

logger = logging.getLogger(__name__)


class SeriesService:
    def __init__(self, series_repository: SeriesRepository, video_repository: VideoRepository) -> None:
        self._series = series_repository
        self._videos = video_repository

    def create_series(self, created_by: str, title: str, description: str = "", thumbnail: str = "") -> Series:
        series = self._series.create(
            Series(id="", title=title, description=description, thumbnail=thumbnail, created_by=created_by)
        )
        logger.info("Created series %s (%s)", series.id, series.title)
        return series

    def list_series(
        self, page: int = 1, limit: int = 20, is_active: Optional[bool] = None
    ) -> Tuple[List[Tuple[Series, int]], int]:
        """Series with their total video counts."""
        items = self._series.list(is_active=is_active, limit=limit, offset=(page - 1) * limit)
        counted = [(series, self._videos.count_by_series(series.id)) for series in items]
        return counted, self._series.count(is_active=is_active)

    def get_series(self, series_id: str) -> Series:
        series = self._series.get_by_id(series_id)
        if not series:
            raise NotFoundError("Series not found")
        return series

    def get_with_videos(self, series_id: str) -> Tuple[Series, List[Video]]:
        series = self.get_series(series_id)
        return series, self._videos.list_by_series(series.id)

    def update_series(self, series_id: str, changes: Dict[str, Any]) -> Series:
        updates = {name: value for name, value in changes.items() if value is not None}
        series = self._series.update(series_id, **updates) if updates else self._series.get_by_id(series_id)
        if not series:
            raise NotFoundError("Series not found")
        return series

    def delete_series(self, series_id: str) -> None:
        series = self.get_series(series_id)
        videos = self._videos.count_by_series(series.id)
        if videos:
            raise ConflictError(
                f"Cannot delete series with {videos} video(s). Delete or reassign them first."
            )
        self._series.delete(series.id)
        logger.info("Deleted series %s", series.id)

    def count_series(self) -> int:
        return self._series.count()

    # Viewer -----------------------------------------------------------------
    def list_active(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Tuple[Series, int]], int]:
        """Active series with counts of their currently available videos."""
        now = now or utcnow()
        items = self._series.list(is_active=True)
        if search:
            needle = search.strip().lower()
            items = [
                series
                for series in items
                if needle in series.title.lower() or needle in series.description.lower()
            ]
        start = (page - 1) * limit
        page_items = items[start:start + limit]
        counted = [(series, self._videos.count_available(now, series_id=series.id)) for series in page_items]
        return counted, len(items)

    def get_active(self, series_id: str) -> Series:
        series = self._series.get_by_id(series_id)
        if not series or not series.is_active:
            raise NotFoundError("Series not found")
        return series
