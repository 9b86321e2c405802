from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from .base import RequestModel


class UploadUrlRequest(RequestModel):
    file_name: str = Field(min_length=1)
    content_type: Literal["video/mp4", "video/quicktime", "video/x-msvideo"] = "video/mp4"


class VideoCreateRequest(RequestModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    thumbnail: str = Field(min_length=1)
    duration: float = Field(ge=0)
    s3_key: str = Field(min_length=1)
    hls_url: str = Field(min_length=1)
    series_id: Optional[str] = Field(None, alias="series")
    season: Optional[int] = Field(None, ge=0)
    episode_number: Optional[int] = Field(None, ge=0)
    publish_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)


class VideoUpdateRequest(RequestModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    thumbnail: Optional[str] = Field(None, min_length=1)
    duration: Optional[float] = Field(None, ge=0)
    hls_url: Optional[str] = Field(None, min_length=1)
    series_id: Optional[str] = Field(None, alias="series")
    season: Optional[int] = Field(None, ge=0)
    episode_number: Optional[int] = Field(None, ge=0)
    publish_at: Optional[datetime] = None
    is_published: Optional[bool] = None
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None
