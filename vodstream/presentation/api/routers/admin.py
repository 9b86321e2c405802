from fastapi import APIRouter, Depends, Query, status

from ....application.services.admin_auth_service import AdminAuthService
from ....core.dependencies import (
    get_admin_auth_service,
    get_series_service,
    get_subscription_service,
    get_user_service,
    get_video_service,
)
from ....domain.models import User
from ....services.series_service import SeriesService
from ....services.subscription_service import SubscriptionService
from ....services.user_service import UserService
from ....services.video_service import VideoService
from ..dependencies import require_admin_user
from ..schemas.admin import AdminCreateRequest, AdminLoginRequest
from ..serializers import pagination, serialize_user

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/login")
def admin_login(
    payload: AdminLoginRequest,
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
) -> dict:
    user, token = admin_auth.authenticate(payload.email, payload.password)
    return {
        "message": "Admin login successful",
        "user": serialize_user(user),
        "accessToken": token,
        "token_type": "bearer",
    }


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_admin(
    payload: AdminCreateRequest,
    _: User = Depends(require_admin_user),
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
) -> dict:
    user = admin_auth.register(payload.email, payload.password, payload.first_name, payload.last_name)
    return {"message": "Admin user created successfully", "user": serialize_user(user)}


@router.get("/me")
def admin_me(current_user: User = Depends(require_admin_user)) -> dict:
    return serialize_user(current_user)


@router.get("/stats")
def admin_stats(
    _: User = Depends(require_admin_user),
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
    user_service: UserService = Depends(get_user_service),
    video_service: VideoService = Depends(get_video_service),
    series_service: SeriesService = Depends(get_series_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> dict:
    return {
        "stats": {
            "totalUsers": user_service.count_users(),
            "totalVideos": video_service.count_videos(),
            "totalSeries": series_service.count_series(),
            "activeSubscriptions": subscription_service.count_entitled(),
            "totalAdmins": admin_auth.count_admins(),
        }
    }


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: User = Depends(require_admin_user),
    user_service: UserService = Depends(get_user_service),
) -> dict:
    users, total = user_service.list_users(page=page, limit=limit)
    return {"users": [serialize_user(user) for user in users], "pagination": pagination(page, limit, total)}
