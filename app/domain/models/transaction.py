from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

STATUS_PENDING = "pending"
STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUSES = frozenset({STATUS_PENDING, STATUS_SUCCESS, STATUS_FAILED})


@dataclass(slots=True)
class TransactionOwner:
    id: int
    name: str
    email: str
    role: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}


@dataclass(slots=True)
class Transaction:
    id: int
    reference: str
    user_id: int
    amount: int
    status: str
    gateway_payload: Optional[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime
    owner: Optional[TransactionOwner] = None

    @property
    def is_successful(self) -> bool:
        return self.status == STATUS_SUCCESS

    def to_dict(self, include_payload: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "reference": self.reference,
            "user": self.owner.to_dict() if self.owner else self.user_id,
            "amount": self.amount,
            "status": self.status,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if include_payload:
            data["gatewayData"] = self.gateway_payload
        return data
