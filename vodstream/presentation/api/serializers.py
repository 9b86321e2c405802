"""JSON shapes returned by the REST API."""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

from ...domain.models import PricingPlan, Reminder, Series, Subscription, User, Video, VideoProgress
from ...utils.time import to_iso


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}


def serialize_user(user: User, has_active_subscription: Optional[bool] = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role,
        "subscription": user.subscription_id,
        "createdAt": to_iso(user.created_at),
        "updatedAt": to_iso(user.updated_at),
    }
    if has_active_subscription is not None:
        data["hasActiveSubscription"] = has_active_subscription
    return data


def serialize_plan(plan: PricingPlan) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "name": plan.name,
        "description": plan.description,
        "price": float(plan.price),
        "currency": plan.currency,
        "interval": plan.interval,
        "stripePriceId": plan.external_price_id,
        "features": plan.features,
        "maxVideoQuality": plan.max_video_quality,
        "concurrentStreams": plan.concurrent_streams,
        "isActive": plan.is_active,
        "createdAt": to_iso(plan.created_at),
        "updatedAt": to_iso(plan.updated_at),
    }


def serialize_subscription(subscription: Subscription, plan: Optional[PricingPlan] = None) -> Dict[str, Any]:
    return {
        "id": subscription.id,
        "user": subscription.user_id,
        "pricingPlan": serialize_plan(plan) if plan else subscription.plan_id,
        "stripeSubscriptionId": subscription.external_subscription_id,
        "stripeCustomerId": subscription.external_customer_id,
        "status": subscription.status.value,
        "currentPeriodStart": to_iso(subscription.current_period_start),
        "currentPeriodEnd": to_iso(subscription.current_period_end),
        "cancelAtPeriodEnd": subscription.cancel_at_period_end,
        "trialStart": to_iso(subscription.trial_start),
        "trialEnd": to_iso(subscription.trial_end),
        "isActive": subscription.is_active(),
        "createdAt": to_iso(subscription.created_at),
        "updatedAt": to_iso(subscription.updated_at),
    }


def serialize_series(series: Series, video_count: Optional[int] = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": series.id,
        "title": series.title,
        "description": series.description,
        "thumbnail": series.thumbnail,
        "isActive": series.is_active,
        "createdBy": series.created_by,
        "createdAt": to_iso(series.created_at),
        "updatedAt": to_iso(series.updated_at),
    }
    if video_count is not None:
        data["videoCount"] = video_count
    return data


def serialize_video(
    video: Video,
    series: Optional[Series] = None,
    uploader: Optional[User] = None,
    public: bool = False,
) -> Dict[str, Any]:
    """Video payload; ``public`` hides storage keys and uploader from viewers."""
    data: Dict[str, Any] = {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "thumbnail": video.thumbnail,
        "duration": video.duration,
        "hlsUrl": video.hls_url,
        "series": (
            {"id": series.id, "title": series.title, "thumbnail": series.thumbnail}
            if series
            else video.series_id
        ),
        "season": video.season,
        "episodeNumber": video.episode_number,
        "publishAt": to_iso(video.publish_at),
        "isPublished": video.is_published,
        "isActive": video.is_active,
        "isAvailable": video.is_available(),
        "tags": video.tags,
        "views": video.views,
        "createdAt": to_iso(video.created_at),
        "updatedAt": to_iso(video.updated_at),
    }
    if not public:
        data["s3Key"] = video.s3_key
        data["uploadedBy"] = (
            {"id": uploader.id, "firstName": uploader.first_name, "lastName": uploader.last_name}
            if uploader
            else video.uploaded_by
        )
    return data


def serialize_reminder(reminder: Reminder, video: Optional[Video] = None) -> Dict[str, Any]:
    return {
        "id": reminder.id,
        "user": reminder.user_id,
        "video": (
            {
                "id": video.id,
                "title": video.title,
                "thumbnail": video.thumbnail,
                "publishAt": to_iso(video.publish_at),
            }
            if video
            else reminder.video_id
        ),
        "reminderDate": to_iso(reminder.reminder_date),
        "notificationType": reminder.notification_type,
        "isNotified": reminder.is_notified,
        "createdAt": to_iso(reminder.created_at),
        "updatedAt": to_iso(reminder.updated_at),
    }


def serialize_progress(progress: VideoProgress) -> Dict[str, Any]:
    return {
        "id": progress.id,
        "video": progress.video_id,
        "progress": progress.progress,
        "completed": progress.completed,
        "lastWatchedAt": to_iso(progress.last_watched_at),
    }
