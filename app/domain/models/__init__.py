"""Domain models for the payments application."""

from .transaction import (
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_SUCCESS,
    STATUSES,
    Transaction,
    TransactionOwner,
)
from .user import ROLE_ADMIN, ROLE_USER, ROLES, User

__all__ = [
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_USER",
    "STATUSES",
    "STATUS_FAILED",
    "STATUS_PENDING",
    "STATUS_SUCCESS",
    "Transaction",
    "TransactionOwner",
    "User",
]
