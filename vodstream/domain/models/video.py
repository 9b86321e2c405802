"""Video catalog entry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from vodstream.utils.time import utcnow


@dataclass(slots=True)
class Video:
    id: str
    title: str
    description: str
    thumbnail: str
    duration: float
    s3_key: str
    hls_url: str
    uploaded_by: str
    publish_at: datetime
    series_id: Optional[str] = None
    season: Optional[int] = None
    episode_number: Optional[int] = None
    is_published: bool = True
    is_active: bool = True
    tags: List[str] = field(default_factory=list)
    views: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def is_available(self, now: Optional[datetime] = None) -> bool:
        """Published, active and past its publish date."""
        now = now or utcnow()
        return self.is_published and self.is_active and self.publish_at <= now
