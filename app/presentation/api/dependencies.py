from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.authorization_service import AuthorizationGate
from ...core.dependencies import get_authorization_gate
from ...domain.models import User

_bearer_scheme = HTTPBearer(auto_error=False)


def require_operation(operation: str) -> Callable[..., User]:
    """Build a dependency that authenticates the caller and checks ``operation``'s roles."""

    def dependency(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
        gate: AuthorizationGate = Depends(get_authorization_gate),
    ) -> User:
        token = None
        if credentials is not None and credentials.scheme.lower() == "bearer":
            token = credentials.credentials
        return gate.authorize(token, operation)

    return dependency
