from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ....core.dependencies import get_media_storage, get_video_service
from ....domain.models import User
from ....services.media_storage import MediaStorage
from ....services.video_service import VideoService
from ..dependencies import get_current_user, require_admin_user
from ..schemas.video import UploadUrlRequest, VideoCreateRequest, VideoUpdateRequest
from ..serializers import pagination, serialize_video

router = APIRouter(prefix="/api/video", tags=["Videos"])


@router.post("/upload-url")
def create_upload_url(
    payload: UploadUrlRequest,
    _: User = Depends(require_admin_user),
    media_storage: MediaStorage = Depends(get_media_storage),
) -> dict:
    """Presign an S3 PUT for a new source file."""
    return media_storage.create_upload_url(payload.file_name, payload.content_type)


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_video(
    payload: VideoCreateRequest,
    admin: User = Depends(require_admin_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    video = video_service.create_video(uploaded_by=admin.id, **payload.model_dump())
    return {"message": "Video created successfully", "video": serialize_video(video)}


@router.get("")
@router.get("/", include_in_schema=False)
def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    series: Optional[str] = None,
    is_published: Optional[bool] = Query(None, alias="isPublished"),
    _: User = Depends(require_admin_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    videos, total = video_service.list_videos(
        page=page, limit=limit, series_id=series, is_published=is_published
    )
    series_by_id, uploaders = video_service.join_related(videos)
    return {
        "videos": [
            serialize_video(
                video,
                series=series_by_id.get(video.series_id),
                uploader=uploaders.get(video.uploaded_by),
            )
            for video in videos
        ],
        "pagination": pagination(page, limit, total),
    }


@router.get("/{video_id}")
def get_video(
    video_id: str,
    _: User = Depends(require_admin_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    return {"video": serialize_video(video_service.get_video(video_id))}


@router.put("/{video_id}")
def update_video(
    video_id: str,
    payload: VideoUpdateRequest,
    _: User = Depends(require_admin_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    video = video_service.update_video(video_id, payload.model_dump(exclude_unset=True))
    return {"message": "Video updated successfully", "video": serialize_video(video)}


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    _: User = Depends(require_admin_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    video_service.delete_video(video_id)
    return {"message": "Video deleted successfully"}


@router.post("/{video_id}/views")
def record_view(
    video_id: str,
    _: User = Depends(get_current_user),
    video_service: VideoService = Depends(get_video_service),
) -> dict:
    return {"views": video_service.increment_views(video_id)}
