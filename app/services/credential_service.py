"""Service for user registration, authentication and password management."""

import logging
import re
from typing import Dict, Optional

import bcrypt

from app.domain.errors import InvalidCredentials, InvalidInput, NotFound
from app.domain.models.user import ROLE_ADMIN, ROLE_USER, User
from app.domain.ports.persistence import UserRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 6
# bcrypt only looks at the first 72 bytes of the secret.
PASSWORD_MAX_BYTES = 72
MIN_RECOMMENDED_ROUNDS = 10


class CredentialService:
    """Service for managing user credentials."""

    def __init__(self, user_repository: UserRepository, bcrypt_rounds: int = 12):
        if bcrypt_rounds < MIN_RECOMMENDED_ROUNDS:
            logger.warning("BCRYPT_ROUNDS=%d is below the recommended minimum of %d", bcrypt_rounds, MIN_RECOMMENDED_ROUNDS)
        self.user_repository = user_repository
        self.bcrypt_rounds = bcrypt_rounds
        # Compared against when the email is unknown so both failure paths cost one bcrypt check.
        self._dummy_hash = self._hash("dummy-password-for-timing")

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
        """
        Register a new user with the ``user`` role.

        Args:
            name: Display name (1-100 characters after trimming)
            email: Email address, normalized before storage
            password: Plain text password (at least 6 characters)

        Returns:
            The created User

        Raises:
            InvalidInput: If any field fails validation
            DuplicateIdentity: If the normalized email is already registered
        """
        errors: Dict[str, str] = {}
        clean_name = (name or "").strip()
        clean_email = (email or "").strip().lower()

        if not clean_name:
            errors["name"] = "Name is required"
        elif len(clean_name) > NAME_MAX_LENGTH:
            errors["name"] = f"Name cannot exceed {NAME_MAX_LENGTH} characters"

        if not clean_email:
            errors["email"] = "Email is required"
        elif not EMAIL_PATTERN.match(clean_email):
            errors["email"] = "Please provide a valid email address"

        password_error = self._validate_password(password)
        if password_error:
            errors["password"] = password_error

        if errors:
            raise InvalidInput("Validation error", errors=errors)

        # Uniqueness is enforced by the storage layer, which raises DuplicateIdentity.
        user = self.user_repository.create_user(
            name=clean_name,
            email=clean_email,
            password_hash=self._hash(password),
            role=ROLE_USER,
        )
        logger.info("Registered user %s", user.id)
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Authenticate a user with email and password.

        Raises:
            InvalidInput: If email or password is missing
            InvalidCredentials: If the email is unknown or the password is wrong
        """
        if not email or not password:
            raise InvalidInput("Please provide email and password.")

        user = self.user_repository.get_user_by_email(email)
        candidate_hash = user.password_hash if user else self._dummy_hash
        password_ok = self._check(password, candidate_hash)
        if not user or not password_ok:
            raise InvalidCredentials()
        return user

    def find_by_id(self, user_id: int) -> User:
        user = self.user_repository.get_user_by_id(user_id)
        if not user:
            raise NotFound("User not found.")
        return user

    def change_password(self, user_id: int, current_password: Optional[str], new_password: Optional[str]) -> User:
        """Replace a user's password after checking the current one."""
        user = self.find_by_id(user_id)
        if not current_password or not self._check(current_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect.")
        password_error = self._validate_password(new_password)
        if password_error:
            raise InvalidInput("Validation error", errors={"newPassword": password_error})
        updated = self.user_repository.update_user_password(user.id, self._hash(new_password))
        logger.info("Password changed for user %s", user.id)
        return updated

    def ensure_admin(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> Optional[User]:
        """Create the configured administrator, or promote an existing account."""
        if not email:
            return None
        existing = self.user_repository.get_user_by_email(email)
        if existing:
            if existing.role != ROLE_ADMIN:
                logger.info("Promoting user %s to administrator", existing.id)
                return self.user_repository.update_user_role(existing.id, ROLE_ADMIN)
            return existing
        if not password:
            return None
        user = self.register(name or "Administrator", email, password)
        logger.info("Creating default administrator account for %s", user.email)
        return self.user_repository.update_user_role(user.id, ROLE_ADMIN)

    @staticmethod
    def _validate_password(password: Optional[str]) -> Optional[str]:
        if not password:
            return "Password is required"
        if len(password) < PASSWORD_MIN_LENGTH:
            return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            return f"Password cannot exceed {PASSWORD_MAX_BYTES} bytes"
        return None

    def _hash(self, password: str) -> str:
        return bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds)
        ).decode("utf-8")

    @staticmethod
    def _check(password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")
        if len(encoded) > PASSWORD_MAX_BYTES:
            return False
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
