from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.admin_auth_service import AdminAuthService
from ...core.dependencies import get_access_gate, get_admin_auth_service, get_user_service
from ...domain.errors import AccessDeniedError
from ...domain.models import User
from ...services.access_gate import AccessGate
from ...services.user_service import UserService

_bearer_scheme = HTTPBearer(auto_error=False)


def require_admin_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    admin_service: AdminAuthService = Depends(get_admin_auth_service),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access denied. No token provided.")
    return admin_service.get_current_admin(credentials.credentials)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Dependency to get current authenticated user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access denied. No token provided.")

    payload = user_service.verify_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user = user_service.get_by_id(payload["user_id"])
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token. User not found.")
    return user


def require_active_subscription(
    user: User = Depends(get_current_user),
    access_gate: AccessGate = Depends(get_access_gate),
) -> User:
    """Dependency that lets only users with an entitling subscription through."""
    decision = access_gate.check_access(user.id)
    if not decision.allowed:
        raise AccessDeniedError("Access denied. Active subscription required.", decision.reason)
    return user
