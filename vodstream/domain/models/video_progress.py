"""Per-user viewing progress for a video."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from vodstream.utils.time import utcnow

COMPLETION_THRESHOLD = 90.0


@dataclass(slots=True)
class VideoProgress:
    id: str
    user_id: str
    video_id: str
    progress: float
    completed: bool
    last_watched_at: datetime
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
