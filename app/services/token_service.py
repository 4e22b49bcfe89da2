"""Service for issuing and verifying session tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from app.core.config import DEFAULT_JWT_SECRET
from app.domain.errors import TokenExpired, TokenMalformed, TokenMissing

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject: int
    role: str


class TokenService:
    """Issues HS256 JWTs carrying the user id and role."""

    def __init__(
        self,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        jwt_expiration_days: int = 7,
    ):
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET is not configured.")
        if jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET is using the default value. Configure a strong secret in production.")
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.jwt_expiration = timedelta(days=jwt_expiration_days)

    def issue(self, user_id: int, role: str, now: Optional[datetime] = None) -> str:
        """
        Create a signed token for a user.

        Args:
            user_id: User ID, stored as the ``sub`` claim
            role: Role at issuance time
            now: Issuance time, defaults to the current UTC time

        Returns:
            JWT token string
        """
        issued_at = now or datetime.now(tz=timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self.jwt_expiration,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def verify(self, token: Optional[str]) -> TokenClaims:
        """
        Verify and decode a token.

        Raises:
            TokenMissing: No token was supplied
            TokenExpired: The signature is valid but ``exp`` has passed
            TokenMalformed: Anything else wrong with the token
        """
        if not token:
            raise TokenMissing()
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise TokenMalformed() from exc

        try:
            subject = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise TokenMalformed() from exc
        role = payload.get("role")
        if not isinstance(role, str):
            raise TokenMalformed()
        return TokenClaims(subject=subject, role=role)
