from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.admin_auth_service import AdminAuthService
from ..domain.errors import (
    AccessDeniedError,
    ConflictError,
    MediaStorageError,
    NotFoundError,
    ProcessorError,
    SignatureInvalidError,
    ValidationError,
    VodstreamError,
)
from ..domain.ports.payments import PaymentProcessor
from ..domain.ports.persistence import DocumentStore
from ..infrastructure.persistence.sqlite import SQLiteDocumentStore
from ..infrastructure.repositories.pricing_plan_repository import PricingPlanRepository
from ..infrastructure.repositories.reminder_repository import ReminderRepository
from ..infrastructure.repositories.series_repository import SeriesRepository
from ..infrastructure.repositories.subscription_repository import SubscriptionRepository
from ..infrastructure.repositories.user_repository import UserRepository
from ..infrastructure.repositories.video_progress_repository import VideoProgressRepository
from ..infrastructure.repositories.video_repository import VideoRepository
from ..presentation.api.routers import admin as admin_router
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import pricing as pricing_router
from ..presentation.api.routers import reminders as reminders_router
from ..presentation.api.routers import series as series_router
from ..presentation.api.routers import stripe_router
from ..presentation.api.routers import user_router
from ..presentation.api.routers import videos as videos_router
from ..services.access_gate import AccessGate
from ..services.email_service import EmailService
from ..services.media_storage import MediaStorage
from ..services.pricing_service import PricingService
from ..services.progress_service import ProgressService
from ..services.reminder_service import ReminderService
from ..services.series_service import SeriesService
from ..services.stripe_gateway import StripeGateway
from ..services.subscription_service import SubscriptionService
from ..services.user_service import UserService
from ..services.video_service import VideoService
from ..services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    NotFoundError: 404,
    ConflictError: 409,
    ValidationError: 400,
    AccessDeniedError: 403,
    ProcessorError: 502,
    SignatureInvalidError: 400,
    MediaStorageError: 502,
}


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Vodstream API", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)
    app.include_router(admin_router.router)
    app.include_router(pricing_router.router)
    app.include_router(videos_router.router)
    app.include_router(series_router.router)
    app.include_router(user_router.router)
    app.include_router(reminders_router.router)
    app.include_router(stripe_router.router)

    @app.exception_handler(VodstreamError)
    async def handle_domain_error(request: Request, exc: VodstreamError) -> JSONResponse:
        status_code = next(
            (code for kind, code in _ERROR_STATUS.items() if isinstance(exc, kind)), 500
        )
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        body: Dict[str, Any] = {"error": str(exc), "type": exc.kind}
        if isinstance(exc, AccessDeniedError):
            body["reason"] = exc.reason
        return JSONResponse(status_code=status_code, content=body)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        container: ApplicationContainer = app.state.container  # type: ignore[attr-defined]
        return {
            "status": "OK",
            "database": "connected" if container.store is not None else "unavailable",
            "payments": "configured" if container.settings.stripe_secret_key else "unconfigured",
        }

    return app


def build_container(
    settings: Settings,
    store: Optional[DocumentStore] = None,
    processor: Optional[PaymentProcessor] = None,
    media_storage: Optional[MediaStorage] = None,
    email_service: Optional[EmailService] = None,
) -> ApplicationContainer:
    """Wire every service; collaborators may be swapped for fakes in tests."""
    store = store or SQLiteDocumentStore(settings.database_path)
    processor = processor or StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)
    media_storage = media_storage or MediaStorage(
        bucket=settings.aws_s3_bucket,
        region=settings.aws_region,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        cloudfront_domain=settings.cloudfront_domain,
        cloudfront_key_pair_id=settings.cloudfront_key_pair_id,
        cloudfront_private_key_path=settings.cloudfront_private_key_path,
    )
    email_service = email_service or EmailService(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
    )

    users = UserRepository(store)
    subscriptions = SubscriptionRepository(store)
    plans = PricingPlanRepository(store)
    videos = VideoRepository(store)
    series = SeriesRepository(store)
    reminders = ReminderRepository(store)
    progress = VideoProgressRepository(store)

    subscription_service = SubscriptionService(subscriptions, users, plans, processor)

    return ApplicationContainer(
        settings=settings,
        store=store,
        processor=processor,
        media_storage=media_storage,
        email_service=email_service,
        admin_auth_service=AdminAuthService(
            user_repository=users,
            secret_key=settings.admin_token_secret,
            token_exp_minutes=settings.admin_token_exp_minutes,
        ),
        user_service=UserService(
            users,
            jwt_secret=settings.jwt_secret,
            jwt_refresh_secret=settings.jwt_refresh_secret,
            jwt_expiration_hours=settings.jwt_expire_hours,
            refresh_expiration_days=settings.jwt_refresh_expire_days,
        ),
        subscription_service=subscription_service,
        webhook_service=WebhookService(processor, subscription_service, plans),
        access_gate=AccessGate(subscriptions),
        pricing_service=PricingService(plans, subscriptions, processor),
        video_service=VideoService(videos, series, users, media_storage),
        series_service=SeriesService(series, videos),
        reminder_service=ReminderService(
            reminders, videos, users, email_service, frontend_base_url=settings.frontend_base_url
        ),
        progress_service=ProgressService(progress, videos),
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = build_container(settings)
        container.admin_auth_service.ensure_default_admin(
            settings.admin_default_email, settings.admin_default_password
        )
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("Vodstream started with database %s", settings.database_path)

        try:
            yield
        finally:
            container.store.close()

    return lifespan
