"""Pydantic schemas for viewer API endpoints."""

from pydantic import EmailStr, Field

from .base import RequestModel


class UserRegisterRequest(RequestModel):
    """Request schema for user registration."""

    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class UserLoginRequest(RequestModel):
    """Request schema for user login."""

    email: EmailStr
    password: str = Field(min_length=1)


class RefreshTokenRequest(RequestModel):
    refresh_token: str = Field(min_length=1)


class ProgressRequest(RequestModel):
    progress: float = Field(ge=0, le=100)
