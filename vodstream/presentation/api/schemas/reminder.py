from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import RequestModel

NotificationType = Literal["email", "push", "both"]


class ReminderCreateRequest(RequestModel):
    video_id: str = Field(min_length=1)
    reminder_date: datetime
    notification_type: NotificationType = "email"


class ReminderUpdateRequest(RequestModel):
    reminder_date: Optional[datetime] = None
    notification_type: Optional[NotificationType] = None
