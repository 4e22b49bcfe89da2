"""Payment transaction API endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....application.services.transaction_service import TransactionService
from ....core.dependencies import get_transaction_service
from ....domain.models import User
from ...api.dependencies import require_operation
from ...api.schemas.payments import InitiatePaymentRequest

router = APIRouter(prefix="/api/payments", tags=["Payments"])

# Handlers are plain ``def`` so the blocking gateway call runs in the threadpool.


@router.post("/initiate")
def initiate_payment(
    payload: InitiatePaymentRequest,
    user: User = Depends(require_operation("payments.initiate")),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Dict[str, Any]:
    """Create a pending transaction and return the gateway checkout URL."""
    data = transactions.initiate(user, payload.amount, payload.email)
    return {"success": True, "message": "Payment initialized successfully", "data": data}


@router.get("/verify/{reference}")
def verify_payment(
    reference: str,
    user: User = Depends(require_operation("payments.verify")),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Dict[str, Any]:
    """Reconcile a transaction with the gateway."""
    result = transactions.verify(reference, user)
    message = "Transaction already verified" if result["already_verified"] else "Transaction verified successfully"
    return {
        "success": True,
        "message": message,
        "data": {"transaction": result["transaction"].to_dict(), "status": result["status"]},
    }


@router.get("/my-transactions")
def my_transactions(
    user: User = Depends(require_operation("payments.my_transactions")),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Dict[str, Any]:
    items = transactions.list_for_owner(user.id)
    return {
        "success": True,
        "count": len(items),
        "data": {"transactions": [item.to_dict(include_payload=False) for item in items]},
    }


@router.get("/all")
def all_transactions(
    _: User = Depends(require_operation("payments.all")),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Dict[str, Any]:
    """List every transaction with its owner (administrators only)."""
    items = transactions.list_all()
    return {
        "success": True,
        "count": len(items),
        "data": {"transactions": [item.to_dict(include_payload=False) for item in items]},
    }
