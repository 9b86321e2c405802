from dataclasses import dataclass

from ..application.services.admin_auth_service import AdminAuthService
from .config import Settings
from ..domain.ports.payments import PaymentProcessor
from ..domain.ports.persistence import DocumentStore
from ..services.access_gate import AccessGate
from ..services.email_service import EmailService
from ..services.media_storage import MediaStorage
from ..services.pricing_service import PricingService
from ..services.progress_service import ProgressService
from ..services.reminder_service import ReminderService
from ..services.series_service import SeriesService
from ..services.subscription_service import SubscriptionService
from ..services.user_service import UserService
from ..services.video_service import VideoService
from ..services.webhook_service import WebhookService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    store: DocumentStore
    processor: PaymentProcessor
    media_storage: MediaStorage
    email_service: EmailService
    admin_auth_service: AdminAuthService
    user_service: UserService
    subscription_service: SubscriptionService
    webhook_service: WebhookService
    access_gate: AccessGate
    pricing_service: PricingService
    video_service: VideoService
    series_service: SeriesService
    reminder_service: ReminderService
    progress_service: ProgressService
