from __future__ import annotations

import logging
import math
import secrets
import time
from typing import Any, Callable, Dict, List, Optional

from ...domain.errors import (
    DuplicateReference,
    Forbidden,
    GatewayError,
    InvalidAmount,
    InvalidInput,
    NotFound,
    PaymentGatewayError,
    ReferenceNotFoundUpstream,
)
from ...domain.models import (
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_SUCCESS,
    Transaction,
    User,
)
from ...domain.ports.persistence import TransactionRepository
from ...services.paystack_service import PaystackService

logger = logging.getLogger(__name__)

# Largest value an SQLite INTEGER column can hold.
MAX_AMOUNT = 2**63 - 1

GATEWAY_STATUS_MAP = {"success": STATUS_SUCCESS, "failed": STATUS_FAILED}


def generate_reference() -> str:
    """Return ``PAY-<epoch milliseconds>-<8 upper-case hex characters>``."""
    return f"PAY-{int(time.time() * 1000)}-{secrets.token_hex(4).upper()}"


class TransactionService:
    """Tracks payment transactions through pending -> success/failed."""

    def __init__(
        self,
        repository: TransactionRepository,
        gateway: PaystackService,
        callback_url: Optional[str] = None,
        reference_factory: Callable[[], str] = generate_reference,
    ) -> None:
        self._repository = repository
        self._gateway = gateway
        self._callback_url = callback_url
        self._reference_factory = reference_factory

    def initiate(self, owner: User, amount: Any, email: Optional[str] = None) -> Dict[str, Any]:
        amount_value = self._validate_amount(amount)
        customer_email = (email or "").strip() or owner.email
        transaction = self._create_pending(owner.id, amount_value)
        reference = transaction.reference

        try:
            data = self._gateway.initialize_transaction(
                amount=amount_value,
                email=customer_email,
                reference=reference,
                callback_url=self._callback_url,
            )
        except PaymentGatewayError as exc:
            self._record_failure(reference, exc)
            raise GatewayError("Failed to initialize payment with the payment gateway.") from exc

        # Stays pending until verified.
        self._repository.update_transaction(reference, STATUS_PENDING, data)
        return {
            "authorization_url": data["authorization_url"],
            "reference": reference,
            "amount": amount_value,
            "access_code": data.get("access_code"),
        }

    def verify(self, reference: Optional[str], requester: User) -> Dict[str, Any]:
        reference = (reference or "").strip()
        if not reference:
            raise InvalidInput("Transaction reference is required.")

        transaction = self._repository.get_transaction_by_reference(reference)
        if not transaction:
            raise NotFound("Transaction not found.")
        if transaction.user_id != requester.id and not requester.is_admin:
            raise Forbidden("You do not have permission to verify this transaction.")
        if transaction.is_successful:
            return {"transaction": transaction, "status": transaction.status, "already_verified": True}

        try:
            data = self._gateway.verify_transaction(reference)
        except PaymentGatewayError as exc:
            self._record_failure(reference, exc)
            if isinstance(exc, ReferenceNotFoundUpstream):
                raise GatewayError("Transaction not found at the payment gateway.") from exc
            raise GatewayError("Failed to verify transaction with the payment gateway.") from exc

        status = GATEWAY_STATUS_MAP.get(str(data.get("status", "")).lower(), STATUS_PENDING)
        updated = self._repository.update_transaction(reference, status, data)
        if updated.status != status:
            logger.info("Transaction %s was settled concurrently as %s", reference, updated.status)
        else:
            logger.info("Transaction %s verified as %s", reference, status)
        return {"transaction": updated, "status": updated.status, "already_verified": False}

    def list_for_owner(self, owner_id: int) -> List[Transaction]:
        return self._repository.list_transactions_for_user(owner_id)

    def list_all(self) -> List[Transaction]:
        return self._repository.list_transactions()

    # ------------------------------------------------------------------
    def _create_pending(self, owner_id: int, amount: int) -> Transaction:
        try:
            return self._repository.create_transaction(self._reference_factory(), owner_id, amount, STATUS_PENDING)
        except DuplicateReference:
            logger.warning("Transaction reference collision, regenerating once")
            return self._repository.create_transaction(self._reference_factory(), owner_id, amount, STATUS_PENDING)

    def _record_failure(self, reference: str, exc: PaymentGatewayError) -> None:
        logger.error("Payment gateway call for %s failed: %s", reference, exc.message)
        self._repository.update_transaction(reference, STATUS_FAILED, {"error": exc.message})

    @staticmethod
    def _validate_amount(amount: Any) -> int:
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise InvalidAmount()
        if isinstance(amount, float) and not math.isfinite(amount):
            raise InvalidAmount()
        if amount < 1 or amount > MAX_AMOUNT:
            raise InvalidAmount()
        return int(math.floor(amount))
