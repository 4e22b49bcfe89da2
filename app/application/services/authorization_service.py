from __future__ import annotations

import logging
from typing import FrozenSet, Mapping, Optional

from ...domain.errors import Forbidden, NotFound, TokenError, Unauthenticated
from ...domain.models import ROLE_ADMIN, ROLE_USER, User
from ...services.credential_service import CredentialService
from ...services.token_service import TokenService

logger = logging.getLogger(__name__)

SELF_SERVICE: FrozenSet[str] = frozenset({ROLE_USER, ROLE_ADMIN})
ADMIN_ONLY: FrozenSet[str] = frozenset({ROLE_ADMIN})

OPERATION_ROLES: Mapping[str, FrozenSet[str]] = {
    "auth.me": SELF_SERVICE,
    "auth.change_password": SELF_SERVICE,
    "payments.initiate": SELF_SERVICE,
    "payments.verify": SELF_SERVICE,
    "payments.my_transactions": SELF_SERVICE,
    "payments.all": ADMIN_ONLY,
}


class AuthorizationGate:
    """Resolves the caller from a bearer token and checks the operation's role set."""

    def __init__(
        self,
        token_service: TokenService,
        credential_service: CredentialService,
        operation_roles: Mapping[str, FrozenSet[str]] = OPERATION_ROLES,
    ) -> None:
        self._tokens = token_service
        self._credentials = credential_service
        self._operation_roles = operation_roles

    def resolve(self, token: Optional[str]) -> User:
        try:
            claims = self._tokens.verify(token)
        except TokenError as exc:
            raise Unauthenticated(exc.message) from exc
        # The role claim may be stale; authorization uses the stored user.
        try:
            return self._credentials.find_by_id(claims.subject)
        except NotFound as exc:
            raise Unauthenticated("User not found. Token may be invalid.") from exc

    def enforce(self, user: User, operation: str) -> User:
        allowed = self._operation_roles[operation]
        if user.role not in allowed:
            logger.info("User %s with role %s denied %s", user.id, user.role, operation)
            raise Forbidden(
                "Access denied. This route requires one of the following roles: "
                + ", ".join(sorted(allowed))
                + "."
            )
        return user

    def authorize(self, token: Optional[str], operation: str) -> User:
        return self.enforce(self.resolve(token), operation)
