from typing import Optional

from pydantic import Field

from .base import RequestModel


class SeriesCreateRequest(RequestModel):
    title: str = Field(min_length=1)
    description: str = ""
    thumbnail: str = ""


class SeriesUpdateRequest(RequestModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    is_active: Optional[bool] = None
