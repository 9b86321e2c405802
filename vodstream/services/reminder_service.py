"""Release reminders and the notification sweep."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..domain.errors import NotFoundError, ValidationError
from ..domain.models.reminder import Reminder
from ..domain.models.video import Video
from ..infrastructure.repositories.reminder_repository import ReminderRepository
from ..infrastructure.repositories.user_repository import UserRepository
from ..infrastructure.repositories.video_repository import VideoRepository
from ..utils.time import ensure_utc, utcnow
from .email_service import EmailService

logger = logging.getLogger(__name__)


class ReminderService:
    def __init__(
        self,
        reminder_repository: ReminderRepository,
        video_repository: VideoRepository,
        user_repository: UserRepository,
        email_service: EmailService,
        frontend_base_url: str = "http://localhost:3000",
    ) -> None:
        self._reminders = reminder_repository
        self._videos = video_repository
        self._users = user_repository
        self._email = email_service
        self._frontend_base_url = frontend_base_url.rstrip("/")

    def create_reminder(
        self,
        user_id: str,
        video_id: str,
        reminder_date: datetime,
        notification_type: str = "email",
        now: Optional[datetime] = None,
    ) -> Reminder:
        """
        Ask to be notified when an upcoming video is released.

        Raises:
            NotFoundError: Unknown video
            ValidationError: The video is already available or a reminder exists
        """
        video = self._videos.get_by_id(video_id)
        if not video:
            raise NotFoundError("Video not found")
        if video.is_available(now):
            raise ValidationError("Video is already available")
        if self._reminders.get_for_user_video(user_id, video_id):
            raise ValidationError("Reminder already exists for this video")
        return self._reminders.create(
            Reminder(
                id="",
                user_id=user_id,
                video_id=video_id,
                reminder_date=ensure_utc(reminder_date),
                notification_type=notification_type,
            )
        )

    def list_reminders(
        self, user_id: str, page: int = 1, limit: int = 20, is_notified: Optional[bool] = None
    ) -> Tuple[List[Reminder], int]:
        reminders = self._reminders.list_by_user(
            user_id, is_notified=is_notified, limit=limit, offset=(page - 1) * limit
        )
        return reminders, self._reminders.count_by_user(user_id, is_notified=is_notified)

    def pending_reminders(self, user_id: str, now: Optional[datetime] = None) -> List[Reminder]:
        return self._reminders.list_pending_for_user(user_id, now or utcnow())

    def update_reminder(self, user_id: str, reminder_id: str, changes: Dict[str, Any]) -> Reminder:
        reminder = self._owned(user_id, reminder_id)
        if reminder.is_notified:
            raise ValidationError("Cannot modify a notified reminder")
        updates = {name: value for name, value in changes.items() if value is not None}
        if "reminder_date" in updates:
            updates["reminder_date"] = ensure_utc(updates["reminder_date"])
        if not updates:
            return reminder
        return self._reminders.update(reminder.id, **updates)

    def delete_reminder(self, user_id: str, reminder_id: str) -> None:
        reminder = self._owned(user_id, reminder_id)
        self._reminders.delete(reminder.id)

    def videos_for(self, reminders: Iterable[Reminder]) -> Dict[str, Video]:
        """Videos referenced by ``reminders``, keyed by id."""
        videos: Dict[str, Video] = {}
        for video_id in {reminder.video_id for reminder in reminders}:
            video = self._videos.get_by_id(video_id)
            if video:
                videos[video_id] = video
        return videos

    def check_notifications(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Email every due reminder that asked for it, then mark all due reminders notified."""
        due = self._reminders.list_due(now or utcnow())
        videos = self.videos_for(due)
        notifications: List[Dict[str, Any]] = []
        for reminder in due:
            user = self._users.get_by_id(reminder.user_id)
            video = videos.get(reminder.video_id)
            title = video.title if video else ""
            if reminder.wants_email and user and video:
                sent = self._email.send_release_reminder(
                    to_email=user.email,
                    first_name=user.first_name,
                    video_title=title,
                    watch_url=f"{self._frontend_base_url}/videos/{video.id}",
                )
                if not sent:
                    logger.warning("Reminder email for %s was not delivered", reminder.id)
            notifications.append(
                {
                    "reminderId": reminder.id,
                    "userId": reminder.user_id,
                    "videoId": reminder.video_id,
                    "userEmail": user.email if user else None,
                    "videoTitle": title,
                }
            )
        if due:
            self._reminders.mark_notified([reminder.id for reminder in due])
            logger.info("Processed %d due reminder(s)", len(due))
        return notifications

    def _owned(self, user_id: str, reminder_id: str) -> Reminder:
        reminder = self._reminders.get_by_id(reminder_id)
        if not reminder or reminder.user_id != user_id:
            raise NotFoundError("Reminder not found")
        return reminder
