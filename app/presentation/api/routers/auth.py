"""API router for user registration and authentication."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from ....core.dependencies import get_credential_service, get_token_service
from ....domain.models import User
from ....services.credential_service import CredentialService
from ....services.token_service import TokenService
from ...api.dependencies import require_operation
from ...api.schemas.auth import ChangePasswordRequest, LoginRequest, RegisterRequest

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    credentials: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Register a new user and return a session token."""
    user = credentials.register(payload.name, payload.email, payload.password)
    return {
        "success": True,
        "message": "User registered successfully",
        "token": tokens.issue(user.id, user.role),
        "user": user.to_public_dict(),
    }


@router.post("/login")
def login(
    payload: LoginRequest,
    credentials: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Login and get a session token."""
    user = credentials.authenticate(payload.email, payload.password)
    return {
        "success": True,
        "message": "Login successful",
        "token": tokens.issue(user.id, user.role),
        "user": user.to_public_dict(),
    }


@router.get("/me")
def me(
    current_user: User = Depends(require_operation("auth.me")),
    credentials: CredentialService = Depends(get_credential_service),
) -> Dict[str, Any]:
    user = credentials.find_by_id(current_user.id)
    return {"success": True, "user": user.to_public_dict()}


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(require_operation("auth.change_password")),
    credentials: CredentialService = Depends(get_credential_service),
) -> Dict[str, Any]:
    credentials.change_password(current_user.id, payload.current_password, payload.new_password)
    return {"success": True, "message": "Password updated successfully"}
