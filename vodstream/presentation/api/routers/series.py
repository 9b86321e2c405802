from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ....core.dependencies import get_series_service
from ....domain.models import User
from ....services.series_service import SeriesService
from ..dependencies import require_admin_user
from ..schemas.series import SeriesCreateRequest, SeriesUpdateRequest
from ..serializers import pagination, serialize_series, serialize_video

router = APIRouter(prefix="/api/series", tags=["Series"])


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_series(
    payload: SeriesCreateRequest,
    admin: User = Depends(require_admin_user),
    series_service: SeriesService = Depends(get_series_service),
) -> dict:
    series = series_service.create_series(created_by=admin.id, **payload.model_dump())
    return {"message": "Series created successfully", "series": serialize_series(series)}


@router.get("")
@router.get("/", include_in_schema=False)
def list_series(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    _: User = Depends(require_admin_user),
    series_service: SeriesService = Depends(get_series_service),
) -> dict:
    items, total = series_service.list_series(page=page, limit=limit, is_active=is_active)
    return {
        "series": [serialize_series(series, video_count=count) for series, count in items],
        "pagination": pagination(page, limit, total),
    }


@router.get("/{series_id}")
def get_series(
    series_id: str,
    _: User = Depends(require_admin_user),
    series_service: SeriesService = Depends(get_series_service),
) -> dict:
    series, videos = series_service.get_with_videos(series_id)
    return {"series": serialize_series(series), "videos": [serialize_video(video) for video in videos]}


@router.put("/{series_id}")
def update_series(
    series_id: str,
    payload: SeriesUpdateRequest,
    _: User = Depends(require_admin_user),
    series_service: SeriesService = Depends(get_series_service),
) -> dict:
    series = series_service.update_series(series_id, payload.model_dump(exclude_unset=True))
    return {"message": "Series updated successfully", "series": serialize_series(series)}


@router.delete("/{series_id}")
def delete_series(
    series_id: str,
    _: User = Depends(require_admin_user),
    series_service: SeriesService = Depends(get_series_service),
) -> dict:
    series_service.delete_series(series_id)
    return {"message": "Series deleted successfully"}
