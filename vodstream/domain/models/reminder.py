"""Release reminder for an upcoming video."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from vodstream.utils.time import utcnow

NOTIFICATION_TYPES = ("email", "push", "both")


@dataclass(slots=True)
class Reminder:
    id: str
    user_id: str
    video_id: str
    reminder_date: datetime
    notification_type: str = "email"
    is_notified: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def wants_email(self) -> bool:
        return self.notification_type in ("email", "both")
