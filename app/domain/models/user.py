"""User domain model for account authentication and authorization."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = frozenset({ROLE_USER, ROLE_ADMIN})


class User:
    """
    User entity representing both regular and administrator accounts.

    Attributes:
        id: Unique identifier
        name: Display name
        email: Normalized (trimmed, lower-cased) email address (unique)
        password_hash: bcrypt hash of the password, never serialized
        role: Either ``user`` or ``admin``
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: int,
        name: str,
        email: str,
        password_hash: str,
        role: str = ROLE_USER,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.email = email
        self.password_hash = password_hash
        self.role = role
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or self.created_at

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_public_dict(self) -> Dict[str, Any]:
        """Serializable view of the user without the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
