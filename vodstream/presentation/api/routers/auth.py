"""API router for viewer authentication."""

from fastapi import APIRouter, Depends, HTTPException, status

from ....core.dependencies import get_access_gate, get_user_service
from ....domain.models import User
from ....services.access_gate import AccessGate
from ....services.user_service import UserService
from ..dependencies import get_current_user
from ..schemas.user_schemas import RefreshTokenRequest, UserLoginRequest, UserRegisterRequest
from ..serializers import serialize_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: UserRegisterRequest,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Register a new viewer account."""
    user = user_service.register(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    access_token, refresh_token = user_service.create_tokens(user)
    return {
        "message": "User registered successfully",
        "user": serialize_user(user),
        "accessToken": access_token,
        "refreshToken": refresh_token,
    }


@router.post("/login")
def login(
    request: UserLoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Login and get access and refresh tokens."""
    user = user_service.authenticate(request.email, request.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. User access required.")

    access_token, refresh_token = user_service.create_tokens(user)
    return {
        "message": "Login successful",
        "user": serialize_user(user),
        "accessToken": access_token,
        "refreshToken": refresh_token,
    }


@router.post("/refresh")
def refresh(
    request: RefreshTokenRequest,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    result = user_service.refresh(request.refresh_token)
    if not result:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    _, access_token, refresh_token = result
    return {"accessToken": access_token, "refreshToken": refresh_token}


@router.post("/logout")
def logout() -> dict:
    # Tokens are stateless; the client discards them.
    return {"message": "Logout successful"}


@router.get("/profile")
def profile(
    user: User = Depends(get_current_user),
    access_gate: AccessGate = Depends(get_access_gate),
) -> dict:
    return {"user": serialize_user(user, has_active_subscription=access_gate.has_access(user.id))}
