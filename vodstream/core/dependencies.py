from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_settings(container: ApplicationContainer = Depends(get_container)):
    return container.settings


def get_admin_auth_service(container: ApplicationContainer = Depends(get_container)):
    return container.admin_auth_service


def get_user_service(container: ApplicationContainer = Depends(get_container)):
    return container.user_service


def get_subscription_service(container: ApplicationContainer = Depends(get_container)):
    return container.subscription_service


def get_webhook_service(container: ApplicationContainer = Depends(get_container)):
    return container.webhook_service


def get_access_gate(container: ApplicationContainer = Depends(get_container)):
    return container.access_gate


def get_pricing_service(container: ApplicationContainer = Depends(get_container)):
    return container.pricing_service


def get_video_service(container: ApplicationContainer = Depends(get_container)):
    return container.video_service


def get_series_service(container: ApplicationContainer = Depends(get_container)):
    return container.series_service


def get_reminder_service(container: ApplicationContainer = Depends(get_container)):
    return container.reminder_service


def get_progress_service(container: ApplicationContainer = Depends(get_container)):
    return container.progress_service


def get_media_storage(container: ApplicationContainer = Depends(get_container)):
    return container.media_storage
