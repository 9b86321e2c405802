from pydantic import EmailStr, Field

from .base import RequestModel


class AdminLoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AdminCreateRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = ""
    last_name: str = ""
