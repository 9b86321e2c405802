"""Domain models for the vodstream application."""

from .pricing_plan import PricingPlan
from .reminder import Reminder
from .series import Series
from .subscription import Subscription, SubscriptionStatus
from .user import User
from .video import Video
from .video_progress import VideoProgress

__all__ = [
    "PricingPlan",
    "Reminder",
    "Series",
    "Subscription",
    "SubscriptionStatus",
    "User",
    "Video",
    "VideoProgress",
]
