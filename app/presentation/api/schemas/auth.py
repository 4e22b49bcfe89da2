"""Pydantic schemas for authentication endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request schema for user registration. Field rules are enforced by the credential service."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")
