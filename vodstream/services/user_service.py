"""Service for viewer authentication and management."""

from datetime import timedelta
from typing import List, Optional, Tuple

import bcrypt
import jwt

from vodstream.domain.errors import ValidationError
from vodstream.domain.models.user import ROLE_USER, User
from vodstream.infrastructure.repositories.user_repository import UserRepository
from vodstream.utils.time import utcnow

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


class UserService:
    """Service for managing viewer registration, login and JWT tokens."""

    def __init__(
        self,
        user_repository: UserRepository,
        jwt_secret: str,
        jwt_refresh_secret: str,
        jwt_algorithm: str = "HS256",
        jwt_expiration_hours: int = 24,
        refresh_expiration_days: int = 7,
    ):
        self.user_repository = user_repository
        self.jwt_secret = jwt_secret
        self.jwt_refresh_secret = jwt_refresh_secret
        self.jwt_algorithm = jwt_algorithm
        self.jwt_expiration_hours = jwt_expiration_hours
        self.refresh_expiration_days = refresh_expiration_days

    def register(self, email: str, password: str, first_name: str, last_name: str) -> User:
        """
        Register a new viewer.

        Args:
            email: User email
            password: Plain text password
            first_name: Given name
            last_name: Family name

        Returns:
            Created User

        Raises:
            ValidationError: If email already exists
        """
        email = email.strip().lower()
        if self.user_repository.get_by_email(email):
            raise ValidationError("User already exists with this email")

        return self.user_repository.create(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=ROLE_USER,
        )

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user with email and password.

        Args:
            email: User email
            password: Plain text password

        Returns:
            User if authenticated, None otherwise
        """
        user = self.user_repository.get_by_email(email.strip().lower())
        if not user:
            return None
        if not check_password(password, user.password_hash):
            return None
        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """Issue an access token and a refresh token for ``user``."""
        now = utcnow()
        access = jwt.encode(
            {
                "user_id": user.id,
                "type": ACCESS_TOKEN,
                "exp": now + timedelta(hours=self.jwt_expiration_hours),
                "iat": now,
            },
            self.jwt_secret,
            algorithm=self.jwt_algorithm,
        )
        refresh = jwt.encode(
            {
                "user_id": user.id,
                "type": REFRESH_TOKEN,
                "exp": now + timedelta(days=self.refresh_expiration_days),
                "iat": now,
            },
            self.jwt_refresh_secret,
            algorithm=self.jwt_algorithm,
        )
        return access, refresh

    def verify_token(self, token: str) -> Optional[dict]:
        """
        Verify and decode an access token.

        Returns:
            Decoded payload if valid, None otherwise
        """
        return self._decode(token, self.jwt_secret, ACCESS_TOKEN)

    def refresh(self, refresh_token: str) -> Optional[Tuple[User, str, str]]:
        """Exchange a refresh token for a new token pair."""
        payload = self._decode(refresh_token, self.jwt_refresh_secret, REFRESH_TOKEN)
        if not payload:
            return None
        user = self.user_repository.get_by_id(payload["user_id"])
        if not user:
            return None
        access, refresh = self.create_tokens(user)
        return user, access, refresh

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return self.user_repository.get_by_id(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self.user_repository.get_by_email(email.strip().lower())

    def list_users(self, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        users = self.user_repository.list_by_role(ROLE_USER, limit=limit, offset=(page - 1) * limit)
        return users, self.user_repository.count_by_role(ROLE_USER)

    def count_users(self) -> int:
        return self.user_repository.count_by_role(ROLE_USER)

    def _decode(self, token: str, secret: str, token_type: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, secret, algorithms=[self.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
        if payload.get("type") != token_type or not payload.get("user_id"):
            return None
        return payload


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
