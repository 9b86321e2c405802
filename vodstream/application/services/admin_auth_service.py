from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from ...domain.errors import ValidationError
from ...domain.models.user import ROLE_ADMIN, User
from ...infrastructure.repositories.user_repository import UserRepository
from ...utils.time import utcnow

logger = logging.getLogger(__name__)


class AdminAuthService:
    """Manages administrator accounts and token-based authentication."""

    def __init__(
        self,
        user_repository: UserRepository,
        secret_key: str,
        token_exp_minutes: int = 1440,
        algorithm: str = "HS256",
    ) -> None:
        if not secret_key:
            raise RuntimeError("ADMIN_TOKEN_SECRET is not configured.")
        if secret_key == "change-me":
            logger.warning("ADMIN_TOKEN_SECRET uses the default value. Set a strong secret in production.")
        self._users = user_repository
        self._secret_key = secret_key
        self._token_exp_minutes = token_exp_minutes
        self._algorithm = algorithm
        self._pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")

    # ------------------------------------------------------------------
    def ensure_default_admin(self, email: Optional[str], password: Optional[str]) -> Optional[User]:
        if not email or not password:
            return None
        existing = self._users.get_by_email(email.lower())
        if existing:
            return existing
        logger.info("Creating default administrator account for %s", email)
        return self._users.create(
            email=email.lower(),
            password_hash=self._pwd.hash(password),
            first_name="Admin",
            last_name="",
            role=ROLE_ADMIN,
        )

    def register(self, email: str, password: str, first_name: str = "", last_name: str = "") -> User:
        email_clean = email.strip().lower()
        if not email_clean:
            raise ValidationError("Email is required.")
        if not password or len(password) < 6:
            raise ValidationError("Password must be at least 6 characters.")
        if self._users.get_by_email(email_clean):
            raise ValidationError("User already exists with this email.")
        return self._users.create(
            email=email_clean,
            password_hash=self._pwd.hash(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=ROLE_ADMIN,
        )

    def authenticate(self, email: str, password: str) -> tuple[User, str]:
        email_clean = email.strip().lower()
        user = self._users.get_by_email(email_clean)
        if not user or not self._pwd.verify(password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")
        if not user.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required.")
        return user, self._create_token(user)

    def verify_token(self, token: str) -> User:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.") from exc
        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.")
        user = self._users.get_by_id(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Administrator not found.")
        return user

    def get_current_admin(self, token: str) -> User:
        user = self.verify_token(token)
        if not user.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required.")
        return user

    def list_admins(self) -> List[User]:
        return self._users.list_by_role(ROLE_ADMIN)

    def count_admins(self) -> int:
        return self._users.count_by_role(ROLE_ADMIN)

    def _create_token(self, user: User) -> str:
        expire = utcnow() + timedelta(minutes=self._token_exp_minutes)
        payload = {"sub": user.id, "email": user.email, "role": user.role, "exp": expire}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
