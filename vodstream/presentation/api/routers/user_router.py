"""Viewer-facing catalog, streaming and progress endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....core.dependencies import get_progress_service, get_series_service, get_video_service
from ....domain.models import User
from ....services.progress_service import ProgressService
from ....services.series_service import SeriesService
from ....services.video_service import VideoService
from ..dependencies import get_current_user, require_active_subscription
from ..schemas.user_schemas import ProgressRequest
from ..serializers import pagination, serialize_progress, serialize_series, serialize_video

router = APIRouter(prefix="/api/user", tags=["users"])


@router.get("/videos")
def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    series: Optional[str] = None,
    search: Optional[str] = None,
    _: User = Depends(get_current_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    """Available videos, newest release first."""
    videos, total = video_service.list_available(page=page, limit=limit, series_id=series, search=search)
    series_by_id, _uploaders = video_service.join_related(videos, include_uploader=False)
    return {
        "videos": [
            serialize_video(video, series=series_by_id.get(video.series_id), public=True) for video in videos
        ],
        "pagination": pagination(page, limit, total),
    }


@router.get("/series")
def list_series(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    search: Optional[str] = None,
    _: User = Depends(get_current_user),
    series_service: SeriesService = Depends(get_series_service),
) -> dict:
    items, total = series_service.list_active(page=page, limit=limit, search=search)
    return {
        "series": [serialize_series(series, video_count=count) for series, count in items],
        "pagination": pagination(page, limit, total),
    }


@router.get("/series/{series_id}")
def get_series(
    series_id: str,
    _: User = Depends(get_current_user),
    series_service: SeriesService = Depends(get_series_service),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    series = series_service.get_active(series_id)
    videos = video_service.list_available_in_series(series.id)
    return {
        "series": serialize_series(series),
        "videos": [serialize_video(video, public=True) for video in videos],
    }


@router.get("/videos/{video_id}")
def get_video(
    video_id: str,
    _: User = Depends(get_current_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    video = video_service.get_available(video_id)
    series_by_id, _uploaders = video_service.join_related([video], include_uploader=False)
    return {"video": serialize_video(video, series=series_by_id.get(video.series_id), public=True)}


@router.get("/videos/{video_id}/stream")
def stream_video(
    video_id: str,
    _: User = Depends(require_active_subscription),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    """Signed playback URL; requires an entitling subscription."""
    video = video_service.get_available(video_id)
    return video_service.stream_url(video)


@router.post("/videos/{video_id}/progress")
def save_progress(
    video_id: str,
    payload: ProgressRequest,
    user: User = Depends(get_current_user),
    progress_service: ProgressService = Depends(get_progress_service),
) -> dict:
    record = progress_service.save_progress(user.id, video_id, payload.progress)
    return {
        "message": "Progress saved successfully",
        "progress": record.progress,
        "completed": record.completed,
    }


@router.get("/progress")
def list_progress(
    user: User = Depends(get_current_user),
    progress_service: ProgressService = Depends(get_progress_service),
) -> dict:
    records, summary = progress_service.list_progress(user.id)
    return {"progress": [serialize_progress(record) for record in records], "summary": summary}


@router.delete("/progress")
def clear_progress(
    user: User = Depends(get_current_user),
    progress_service: ProgressService = Depends(get_progress_service),
) -> dict:
    deleted = progress_service.clear_progress(user.id)
    return {"message": "Progress cleared successfully", "deleted": deleted}
