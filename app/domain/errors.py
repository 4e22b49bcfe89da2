"""Application error taxonomy.

Every error carries the HTTP status it maps to so the exception handlers in
``app.core.app_factory`` can render a stable ``{success, message, errors?}``
body without knowing about individual error types.
"""

from __future__ import annotations

from typing import Dict, Optional


class AppError(Exception):
    """Base class for errors that are reported to API clients."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, str]] = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


# 400 ------------------------------------------------------------------------
class InvalidInput(AppError):
    status_code = 400
    default_message = "Validation error"


class InvalidAmount(InvalidInput):
    default_message = "Please provide a valid amount (minimum 1 kobo)."


# 401 ------------------------------------------------------------------------
class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid email or password."


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authentication required."


class TokenError(AppError):
    status_code = 401
    default_message = "Invalid token."


class TokenMissing(TokenError):
    default_message = "No token provided. Please include a Bearer token in the Authorization header."


class TokenMalformed(TokenError):
    default_message = "Invalid token."


class TokenExpired(TokenError):
    default_message = "Token has expired. Please login again."


# 403 / 404 / 409 --------------------------------------------------------------
class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied."


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found."


class DuplicateIdentity(AppError):
    status_code = 409
    default_message = "Email already registered. Please use a different email or login."


# 500 ------------------------------------------------------------------------
class DuplicateReference(AppError):
    default_message = "Could not allocate a unique transaction reference."


class GatewayError(AppError):
    """Raised by the ledger after a failed gateway round trip was recorded."""

    status_code = 500
    default_message = "Payment gateway request failed. Please try again."


class PaymentGatewayError(AppError):
    """Base class for failures reported by the payment gateway adapter."""

    status_code = 500
    default_message = "Payment gateway error."


class ConfigurationError(PaymentGatewayError):
    default_message = "Payment gateway is not configured."


class NetworkError(PaymentGatewayError):
    default_message = "Network error: could not reach the payment gateway."


class GatewayRejected(PaymentGatewayError):
    default_message = "Payment gateway rejected the request."

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class ReferenceNotFoundUpstream(GatewayRejected):
    default_message = "Transaction not found. Invalid reference."
