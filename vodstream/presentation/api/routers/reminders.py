from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ....core.dependencies import get_reminder_service
from ....domain.models import User
from ....services.reminder_service import ReminderService
from ..dependencies import get_current_user, require_admin_user
from ..schemas.reminder import ReminderCreateRequest, ReminderUpdateRequest
from ..serializers import pagination, serialize_reminder

router = APIRouter(prefix="/api/reminder", tags=["Reminders"])


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_reminder(
    payload: ReminderCreateRequest,
    user: User = Depends(get_current_user),
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> dict:
    reminder = reminder_service.create_reminder(
        user.id, payload.video_id, payload.reminder_date, payload.notification_type
    )
    videos = reminder_service.videos_for([reminder])
    return {
        "message": "Reminder created successfully",
        "reminder": serialize_reminder(reminder, videos.get(reminder.video_id)),
    }


@router.get("")
@router.get("/", include_in_schema=False)
def list_reminders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    is_notified: Optional[bool] = Query(None, alias="isNotified"),
    user: User = Depends(get_current_user),
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> dict:
    reminders, total = reminder_service.list_reminders(user.id, page=page, limit=limit, is_notified=is_notified)
    videos = reminder_service.videos_for(reminders)
    return {
        "reminders": [serialize_reminder(reminder, videos.get(reminder.video_id)) for reminder in reminders],
        "pagination": pagination(page, limit, total),
    }


@router.get("/pending")
def pending_reminders(
    user: User = Depends(get_current_user),
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> dict:
    reminders = reminder_service.pending_reminders(user.id)
    videos = reminder_service.videos_for(reminders)
    return {"reminders": [serialize_reminder(reminder, videos.get(reminder.video_id)) for reminder in reminders]}


@router.put("/{reminder_id}")
def update_reminder(
    reminder_id: str,
    payload: ReminderUpdateRequest,
    user: User = Depends(get_current_user),
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> dict:
    reminder = reminder_service.update_reminder(user.id, reminder_id, payload.model_dump(exclude_unset=True))
    videos = reminder_service.videos_for([reminder])
    return {
        "message": "Reminder updated successfully",
        "reminder": serialize_reminder(reminder, videos.get(reminder.video_id)),
    }


@router.delete("/{reminder_id}")
def delete_reminder(
    reminder_id: str,
    user: User = Depends(get_current_user),
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> dict:
    reminder_service.delete_reminder(user.id, reminder_id)
    return {"message": "Reminder deleted successfully"}


@router.post("/check-notifications")
def check_notifications(
    _: User = Depends(require_admin_user),
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> dict:
    """Send due reminders and mark them notified."""
    notifications = reminder_service.check_notifications()
    return {
        "message": "Notifications processed",
        "notifiedCount": len(notifications),
        "notifications": notifications,
    }
