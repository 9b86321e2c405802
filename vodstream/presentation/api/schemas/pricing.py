from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field

from .base import RequestModel

Currency = Literal["USD", "EUR", "GBP"]
Interval = Literal["month", "year"]
VideoQuality = Literal["720p", "1080p", "4k"]


class PlanCreateRequest(RequestModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    currency: Currency = "USD"
    interval: Interval
    features: List[str] = Field(default_factory=list)
    max_video_quality: VideoQuality = "1080p"
    concurrent_streams: int = Field(default=2, ge=1, le=10)


class PlanUpdateRequest(RequestModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    currency: Optional[Currency] = None
    interval: Optional[Interval] = None
    features: Optional[List[str]] = None
    is_active: Optional[bool] = None
    max_video_quality: Optional[VideoQuality] = None
    concurrent_streams: Optional[int] = Field(None, ge=1, le=10)
