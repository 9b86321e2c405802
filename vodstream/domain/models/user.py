"""User domain model for viewer and administrator accounts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from vodstream.utils.time import utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(slots=True)
class User:
    """
    User entity representing both viewer and admin accounts.

    Attributes:
        id: Unique identifier
        email: Lower-cased email address (unique)
        password_hash: bcrypt password hash
        first_name: Given name
        last_name: Family name
        role: ``user`` or ``admin``
        external_customer_id: Payment processor customer, created on first checkout
        subscription_id: Back-reference to the user's subscription record
    """

    id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: str = ROLE_USER
    external_customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
